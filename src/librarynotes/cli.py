"""Command line interface for librarynotes."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import typer
from rich.console import Console
from rich.table import Table

from librarynotes.config import CONTENT_KINDS, ConfigError, LibraryConfig, load_config
from librarynotes.index.indexer import DocumentIndex
from librarynotes.index.storage import LocalStorage
from librarynotes.metadata.codec import decode
from librarynotes.models import FolderData, OperationResult
from librarynotes.organize.resolver import resolve_folder
from librarynotes.service import LibraryError, LibraryService
from librarynotes.utils.durations import seconds_to_clock
from librarynotes.utils.text import normalize_list

console = Console()
app = typer.Typer(help="librarynotes - organize a library of metadata-headed notes")

CONFIG_OPTION = typer.Option(None, "--config", "-c", help="Path to a librarynotes.toml file")
LIBRARY_OPTION = typer.Option(None, "--library", "-l", help="Library folder (overrides the config)")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Verbose logging")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _load(config_path: Optional[Path], library: Optional[Path]) -> Tuple[LibraryConfig, LocalStorage]:
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ConfigError) as exc:
        raise typer.BadParameter(str(exc)) from exc
    if library is not None:
        config.library_dir = library
    base_dir = config.resolve_library_dir(Path.cwd())
    if not base_dir.is_dir():
        raise typer.BadParameter(f"Library folder not found: {base_dir}")
    return config, LocalStorage(base_dir)


def _check_kind(kind: str) -> str:
    if kind not in CONTENT_KINDS:
        raise typer.BadParameter(f"Kind must be one of: {', '.join(CONTENT_KINDS)}")
    return kind


def _parse_assignments(items: List[str]) -> Dict[str, str]:
    fields: Dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected key=value, got {item!r}")
        fields[key.strip()] = value.strip()
    return fields


def _report(result: OperationResult) -> None:
    if result.ok:
        console.print(f"[green]OK[/green] {result.path}")
        return
    console.print(f"[red]Failed:[/red] {result.path}: {result.error}")
    raise typer.Exit(code=1)


@app.command()
def scan(
    kind: str = typer.Argument(..., help="Content kind: video or book"),
    config_path: Optional[Path] = CONFIG_OPTION,
    library: Optional[Path] = LIBRARY_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """List the notes of one content kind."""
    _setup_logging(verbose)
    config, storage = _load(config_path, library)
    result = DocumentIndex(storage, config).scan(_check_kind(kind))

    if not result.records:
        console.print("[yellow]No notes found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Title")
    table.add_column("Type")
    table.add_column("By")
    table.add_column("Status")
    table.add_column("Categories")
    table.add_column("Path")
    for record in result.records:
        table.add_row(
            record.title,
            record.type,
            record.party,
            record.status,
            ", ".join(record.categories),
            record.path,
        )
    console.print(table)

    stats = result.stats
    console.print(
        f"Indexed: {stats.indexed}, skipped: {stats.skipped}, failed: {stats.failed}"
    )
    console.print(f"Parties: {', '.join(result.facets.parties) or '-'}")
    console.print(f"Categories: {', '.join(result.facets.categories) or '-'}")
    console.print(f"Tags: {', '.join(result.facets.tags) or '-'}")


@app.command()
def show(
    path: str = typer.Argument(..., help="Library path of the note"),
    config_path: Optional[Path] = CONFIG_OPTION,
    library: Optional[Path] = LIBRARY_OPTION,
) -> None:
    """Print the metadata block of a note."""
    _, storage = _load(config_path, library)
    if not storage.exists(path):
        raise typer.BadParameter(f"Note not found: {path}")
    decoded = decode(storage.read(path))
    if decoded is None:
        console.print("[yellow]Note has no metadata block.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Field")
    table.add_column("Value")
    for key, value in decoded[0].items():
        shown = ", ".join(str(item) for item in value) if isinstance(value, list) else str(value)
        table.add_row(key, shown)
    console.print(table)


@app.command("set-field")
def set_field(
    path: str = typer.Argument(..., help="Library path of the note"),
    key: str = typer.Argument(..., help="Field name, logical (title) or literal"),
    value: str = typer.Argument("", help="New value"),
    as_list: bool = typer.Option(False, "--list", help="Store a comma-separated value as a list"),
    config_path: Optional[Path] = CONFIG_OPTION,
    library: Optional[Path] = LIBRARY_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Set a single metadata field, moving the note if its folder changes."""
    _setup_logging(verbose)
    config, storage = _load(config_path, library)
    service = LibraryService(storage, config)
    _report(service.update(path, {key: normalize_list(value) if as_list else value}))


@app.command("set-status")
def set_status(
    status: str = typer.Argument(..., help="New status"),
    paths: List[str] = typer.Argument(..., help="Library paths of the notes"),
    config_path: Optional[Path] = CONFIG_OPTION,
    library: Optional[Path] = LIBRARY_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Change the status of one or more notes."""
    _setup_logging(verbose)
    config, storage = _load(config_path, library)
    result = LibraryService(storage, config).bulk_update_status(paths, status)
    console.print(f"Updated: {result.success}, failed: {result.failed}")
    for message in result.messages:
        console.print(f"[red]{message}[/red]")
    if result.failed:
        raise typer.Exit(code=1)


@app.command()
def update(
    path: str = typer.Argument(..., help="Library path of the note"),
    assignments: List[str] = typer.Option([], "--set", "-s", help="key=value, repeatable"),
    description: Optional[str] = typer.Option(None, help="Replace the description section"),
    config_path: Optional[Path] = CONFIG_OPTION,
    library: Optional[Path] = LIBRARY_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Update several fields of a note at once."""
    _setup_logging(verbose)
    data: Dict[str, object] = dict(_parse_assignments(assignments))
    if description is not None:
        data["description"] = description
    if not data:
        raise typer.BadParameter("Nothing to update")
    config, storage = _load(config_path, library)
    _report(LibraryService(storage, config).update(path, data))


@app.command()
def create(
    kind: str = typer.Argument(..., help="Content kind: video or book"),
    title: str = typer.Option(..., "--title", "-t", help="Title of the note"),
    party: Optional[str] = typer.Option(None, "--by", help="Presenter or author"),
    type_label: Optional[str] = typer.Option(None, "--type", help="Type label"),
    status: Optional[str] = typer.Option(None, help="Initial status"),
    categories: List[str] = typer.Option([], "--category", help="Category, repeatable"),
    tags: List[str] = typer.Option([], "--tag", help="Tag, repeatable"),
    assignments: List[str] = typer.Option([], "--set", "-s", help="Extra key=value, repeatable"),
    description: Optional[str] = typer.Option(None, help="Description text"),
    config_path: Optional[Path] = CONFIG_OPTION,
    library: Optional[Path] = LIBRARY_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Create a new note in the folder its metadata resolves to."""
    _setup_logging(verbose)
    _check_kind(kind)
    config, storage = _load(config_path, library)
    data: Dict[str, object] = dict(_parse_assignments(assignments))
    data["title"] = title
    if party:
        data["author" if kind == "book" else "presenter"] = party
    if type_label:
        data["type"] = type_label
    if status:
        data["status"] = status
    if categories:
        data["categories"] = categories
    if tags:
        data["tags"] = tags
    if description:
        data["description"] = description
    _report(LibraryService(storage, config).create(kind, data))


@app.command()
def resolve(
    kind: str = typer.Argument(..., help="Content kind: video or book"),
    type_label: str = typer.Option("", "--type", help="Type label"),
    party: str = typer.Option("", "--by", help="Presenter or author"),
    date: str = typer.Option("", help="Date as YYYY-MM-DD"),
    category: Optional[str] = typer.Option(None, help="First category"),
    config_path: Optional[Path] = CONFIG_OPTION,
) -> None:
    """Print the folder a note with the given fields would be stored in."""
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ConfigError) as exc:
        raise typer.BadParameter(str(exc)) from exc
    folder_data = FolderData(type=type_label, party=party, date=date, category=category)
    console.print(resolve_folder(config, _check_kind(kind), folder_data))


@app.command()
def benefits(
    path: Optional[str] = typer.Argument(None, help="Library path of a note; all notes when omitted"),
    kind: Optional[str] = typer.Option(None, help="Limit to one content kind"),
    config_path: Optional[Path] = CONFIG_OPTION,
    library: Optional[Path] = LIBRARY_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """List the benefits recorded in one note or in the whole library."""
    _setup_logging(verbose)
    config, storage = _load(config_path, library)
    service = LibraryService(storage, config)
    if path:
        try:
            found = service.get_benefits(path)
        except (LibraryError, OSError) as exc:
            raise typer.BadParameter(str(exc)) from exc
    else:
        found = service.all_benefits(_check_kind(kind) if kind else None)

    if not found:
        console.print("[yellow]No benefits found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Note")
    table.add_column("Location")
    table.add_column("Text")
    for item in found:
        if item.timestamp:
            location = seconds_to_clock(item.timestamp)
        else:
            location = " / ".join(str(part) for part in (item.volume, item.page) if part)
        table.add_row(item.id, item.title, item.parent_title, location, item.text)
    console.print(table)
    console.print(f"Benefits: {len(found)}")


@app.command("add-benefit")
def add_benefit(
    path: str = typer.Argument(..., help="Library path of the note"),
    title: str = typer.Option(..., "--title", "-t", help="Title of the benefit"),
    text: str = typer.Option(..., "--text", help="Benefit text"),
    page: Optional[int] = typer.Option(None, help="Page number (books)"),
    volume: Optional[int] = typer.Option(None, help="Volume number (books)"),
    timestamp: Optional[str] = typer.Option(None, "--time", help="Position as H:MM:SS (videos)"),
    categories: List[str] = typer.Option([], "--category", help="Category, repeatable"),
    tags: List[str] = typer.Option([], "--tag", help="Tag, repeatable"),
    config_path: Optional[Path] = CONFIG_OPTION,
    library: Optional[Path] = LIBRARY_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Append a benefit to the benefits section of a note."""
    _setup_logging(verbose)
    config, storage = _load(config_path, library)
    data: Dict[str, object] = {"title": title, "text": text, "categories": categories, "tags": tags}
    if page is not None:
        data["page"] = page
    if volume is not None:
        data["volume"] = volume
    if timestamp:
        data["timestamp"] = timestamp
    _report(LibraryService(storage, config).add_benefit(path, data))


@app.command("remove-benefit")
def remove_benefit(
    path: str = typer.Argument(..., help="Library path of the note"),
    benefit_id: str = typer.Argument(..., help="Benefit id, as listed by the benefits command"),
    config_path: Optional[Path] = CONFIG_OPTION,
    library: Optional[Path] = LIBRARY_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Delete one benefit from a note."""
    _setup_logging(verbose)
    config, storage = _load(config_path, library)
    _report(LibraryService(storage, config).delete_benefit(path, benefit_id))


if __name__ == "__main__":
    app()
