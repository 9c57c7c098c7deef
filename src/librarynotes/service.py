"""Create, update and organize library notes."""

from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from librarynotes.config import CONTENT_KINDS, LibraryConfig
from librarynotes.index.indexer import iter_note_paths
from librarynotes.index.storage import Storage
from librarynotes.kinds import folder_keys, note_title, ordered_fields, projection_for, to_metadata
from librarynotes.metadata import benefits as benefit_codec
from librarynotes.metadata.codec import MetadataBlock, decode, encode_fields, split_document
from librarynotes.models import Benefit, BulkResult, FolderData, OperationResult
from librarynotes.organize.relocation import RelocationEngine
from librarynotes.organize.resolver import resolve_folder
from librarynotes.utils.dates import format_date, today
from librarynotes.utils.durations import hms_to_seconds
from librarynotes.utils.files import NOTE_SUFFIX, join_path, parent_of, sanitize_file_name
from librarynotes.utils.text import as_int, as_text, first_item, normalize_list

LOGGER = logging.getLogger(__name__)

DESCRIPTION_HEADING = "## الوصف"
NOTES_HEADING = "## الملاحظات"
BULK_MODES = ("replace", "append")
BENEFIT_TIME_FORMAT = "YYYY-MM-DD HH:mm:ss"


class LibraryError(Exception):
    """Raised inside an operation to report an expected failure."""


class LibraryService:
    """Operations on library notes, composed from storage, resolver and relocation."""

    def __init__(
        self,
        storage: Storage,
        config: LibraryConfig,
        now: Optional[datetime] = None,
    ) -> None:
        self.storage = storage
        self.config = config
        self.now = now
        self.relocation = RelocationEngine(storage)

    # ------------------------------------------------------------------ helpers

    def _now(self) -> datetime:
        return self.now or datetime.now()

    def _today(self) -> str:
        return today(self.config.date_format, self._now())

    def kind_for(self, path: str) -> str:
        kind = self.config.kind_for_path(path)
        if kind is None:
            raise LibraryError(f"{path} is not inside a content folder")
        return kind

    def _read_block(self, path: str) -> tuple[str, MetadataBlock]:
        if not self.storage.exists(path):
            raise LibraryError("File not found")
        text = self.storage.read(path)
        decoded = decode(text)
        if decoded is None:
            raise LibraryError("Note has no metadata block")
        return text, decoded[0]

    def _write(self, path: str, text: str) -> None:
        self.storage.write(path, text)
        LOGGER.debug("Wrote %s", path)

    def _guard(self, path: str, operation: Callable[[], str]) -> OperationResult:
        try:
            return OperationResult(ok=True, path=operation())
        except (LibraryError, OSError, ValueError) as exc:
            LOGGER.error("Operation on %s failed: %s", path, exc)
            return OperationResult(ok=False, path=path, error=str(exc))

    def _relocate(
        self, path: str, kind: str, before: Mapping[str, object], after: Mapping[str, object]
    ) -> str:
        """Move the note if its folder changed; a refused move is an error.

        The metadata has already been written when this runs, so the error message
        says where the note stayed.
        """
        settings = self.config.kind(kind)
        projection = projection_for(kind)

        def resolve(folder_data: FolderData) -> str:
            return resolve_folder(self.config, kind, folder_data, self._now())

        def project(block: Mapping[str, object]) -> FolderData:
            return projection(block, self.config)

        new_path = self.relocation.relocate_if_needed(
            path,
            before,
            after,
            settings.folder_rules.enabled,
            resolve,
            settings.root_folder,
            project=project,
        )
        if new_path == path and settings.folder_rules.enabled:
            target = self.relocation.target_folder(before, after, resolve, project)
            if target != parent_of(path):
                raise LibraryError(
                    f"Metadata saved but the note could not be moved to {target}; it stays at {path}"
                )
        return new_path

    def _status_dates(
        self,
        kind: str,
        status: str,
        block: Mapping[str, object],
        *,
        only_on_change: bool = False,
    ) -> Dict[str, str]:
        """Start/completion date changes implied by moving a note to ``status``.

        With ``only_on_change`` the dates are touched only when the status actually
        changes, and existing dates are kept.
        """
        names = self.config.fields
        lifecycle = self.config.kind(kind).lifecycle
        current = as_text(block.get(names.status))
        has_start = bool(as_text(block.get(names.start_date)))
        has_completion = bool(as_text(block.get(names.completion_date)))
        stamp = self._today()
        changes: Dict[str, str] = {}

        if status == lifecycle.completed:
            if only_on_change and current == status:
                return changes
            if not (only_on_change and has_completion):
                changes[names.completion_date] = stamp
            if not has_start:
                changes[names.start_date] = stamp
        elif status == lifecycle.in_progress:
            if only_on_change and current == status:
                return changes
            if not (only_on_change and has_start):
                changes[names.start_date] = stamp
            changes[names.completion_date] = ""
        elif status in lifecycle.idle:
            if only_on_change and current not in (lifecycle.completed, lifecycle.in_progress):
                return changes
            changes[names.start_date] = ""
            changes[names.completion_date] = ""
        return changes

    def _normalize_lists(self, metadata: Dict[str, object]) -> None:
        names = self.config.fields
        for key in (names.tags, names.categories):
            if key in metadata:
                metadata[key] = normalize_list(metadata[key])

    # ------------------------------------------------------------------ single notes

    def create(self, kind: str, data: Mapping[str, object]) -> OperationResult:
        """Write a new note for ``kind`` into the folder its metadata resolves to."""
        title_hint = as_text(data.get("title"))
        return self._guard(title_hint or kind, lambda: self._create(kind, data))

    def _create(self, kind: str, data: Mapping[str, object]) -> str:
        names = self.config.fields
        settings = self.config.kind(kind)
        values = dict(data)
        description = as_text(values.pop("description", None))
        metadata = to_metadata(values, self.config)

        title = as_text(metadata.get(names.title)).strip()
        if not title:
            raise LibraryError("A title is required")
        stamp = self._today()
        party_key = self.config.party_key(kind)

        metadata[names.title] = title
        if not as_text(metadata.get(names.type)):
            metadata[names.type] = settings.generic_type
        if not as_text(metadata.get(party_key)):
            metadata[party_key] = settings.default_party
        if not as_text(metadata.get(names.status)):
            metadata[names.status] = settings.default_status
        if not as_text(metadata.get(names.date_added)):
            metadata[names.date_added] = stamp
        metadata[names.categories] = normalize_list(metadata.get(names.categories))
        metadata[names.tags] = normalize_list(metadata.get(names.tags))
        for key, value in self._status_dates(kind, as_text(metadata[names.status]), {}).items():
            if value and not as_text(metadata.get(key)):
                metadata[key] = value

        folder = resolve_folder(self.config, kind, projection_for(kind)(metadata, self.config), self._now())
        if not self.storage.create_dir(folder):
            raise LibraryError(f"Could not create folder {folder}")
        file_name = sanitize_file_name(title, self.config.max_filename_length, self._now()) + NOTE_SUFFIX
        path = join_path(folder, file_name)
        if self.storage.exists(path):
            raise LibraryError(f"{path} already exists")

        body = f"# {title}\n"
        if description:
            body += f"\n{DESCRIPTION_HEADING}\n\n{description}\n"
        text = encode_fields(body, ordered_fields(metadata, self.config, kind), self.config.list_keys)
        self._write(path, text)
        LOGGER.info("Created %s", path)
        return path

    def update(self, path: str, data: Mapping[str, object]) -> OperationResult:
        """Merge ``data`` into a note and move it if its folder fields changed.

        The result's ``path`` is where the note lives afterwards.
        """
        return self._guard(path, lambda: self._update(path, data))

    def _update(self, path: str, data: Mapping[str, object]) -> str:
        kind = self.kind_for(path)
        names = self.config.fields
        text, before = self._read_block(path)
        values = dict(data)
        description = values.pop("description", None)
        metadata = to_metadata(values, self.config)
        self._normalize_lists(metadata)

        changes: Dict[str, object] = {}
        status = as_text(metadata.get(names.status))
        if status:
            changes.update(self._status_dates(kind, status, before, only_on_change=True))
        # Explicit dates win over the ones implied by the status.
        changes.update(metadata)

        updated = encode_fields(text, changes, self.config.list_keys)
        if description is not None:
            updated = set_description(updated, as_text(description))
        self._write(path, updated)

        if any(key in metadata for key in folder_keys(self.config, kind)):
            return self._relocate(path, kind, before, metadata)
        return path

    def update_status(self, path: str, status: str) -> OperationResult:
        return self._guard(path, lambda: self._update_status(path, status))

    def _update_status(self, path: str, status: str) -> str:
        kind = self.kind_for(path)
        text, before = self._read_block(path)
        changes: Dict[str, object] = {self.config.fields.status: status}
        changes.update(self._status_dates(kind, status, before))
        self._write(path, encode_fields(text, changes, self.config.list_keys))
        return path

    def update_tags(self, path: str, tags: Iterable[str]) -> OperationResult:
        def run() -> str:
            text, _ = self._read_block(path)
            fields = {self.config.fields.tags: normalize_list(list(tags))}
            self._write(path, encode_fields(text, fields, self.config.list_keys))
            return path

        return self._guard(path, run)

    def update_categories(self, path: str, categories: Iterable[str]) -> OperationResult:
        """Replace a note's categories; a new first category may move the note."""
        return self._guard(path, lambda: self._update_categories(path, list(categories)))

    def _update_categories(self, path: str, categories: List[str]) -> str:
        kind = self.kind_for(path)
        key = self.config.fields.categories
        text, before = self._read_block(path)
        fresh = normalize_list(categories)
        self._write(path, encode_fields(text, {key: fresh}, self.config.list_keys))

        if first_item(before.get(key)) != first_item(fresh):
            return self._relocate(path, kind, before, {key: fresh})
        return path

    def delete(self, path: str) -> OperationResult:
        def run() -> str:
            if not self.storage.exists(path):
                raise LibraryError("File not found")
            self.storage.delete(path)
            LOGGER.info("Deleted %s", path)
            return path

        return self._guard(path, run)

    # ------------------------------------------------------------------ benefits

    def _benefit_stamp(self) -> str:
        return format_date(self._now(), BENEFIT_TIME_FORMAT)

    def _new_benefit_id(self) -> str:
        return f"{int(self._now().timestamp() * 1000)}-{uuid.uuid4().hex[:9]}"

    def _annotate(self, benefit: Benefit, path: str, kind: str, block: MetadataBlock) -> Benefit:
        benefit.path = path
        benefit.kind = kind
        benefit.parent_title = note_title(block, self.config, path)
        benefit.party = as_text(block.get(self.config.party_key(kind)))
        return benefit

    def _benefit_from(self, data: Mapping[str, object], base: Benefit) -> Benefit:
        """Overlay the logical benefit fields in ``data`` onto ``base``."""
        if "title" in data:
            base.title = " ".join(as_text(data["title"]).split())
        if "text" in data:
            base.text = as_text(data["text"]).strip()
        if "page" in data:
            base.page = as_int(data["page"]) or None
        if "volume" in data:
            base.volume = as_int(data["volume"]) or None
        if "timestamp" in data:
            base.timestamp = hms_to_seconds(data["timestamp"]) or None
        if "categories" in data:
            base.categories = normalize_list(data["categories"])
        if "tags" in data:
            base.tags = normalize_list(data["tags"])
        if not base.title or not base.text:
            raise LibraryError("A benefit needs a title and a text")
        return base

    def _read_note(self, path: str) -> str:
        if not self.storage.exists(path):
            raise LibraryError("File not found")
        return self.storage.read(path)

    def get_benefits(self, path: str) -> List[Benefit]:
        """Benefits recorded in one note, tagged with the note they came from."""
        kind = self.kind_for(path)
        text = self._read_note(path)
        block, _ = split_document(text)
        return [self._annotate(item, path, kind, block) for item in benefit_codec.read_benefits(text)]

    def all_benefits(self, kind: Optional[str] = None) -> List[Benefit]:
        """Benefits of every note, optionally limited to one content kind.

        A note that cannot be read is logged and skipped.
        """
        kinds = [kind] if kind else list(CONTENT_KINDS)
        found: List[Benefit] = []
        for current in kinds:
            root = self.config.kind(current).root_folder
            if not self.storage.is_dir(root):
                continue
            for path in iter_note_paths(self.storage, root):
                try:
                    found.extend(self.get_benefits(path))
                except (LibraryError, OSError, ValueError) as exc:
                    LOGGER.error("Failed to read benefits from %s: %s", path, exc)
        return found

    def add_benefit(
        self, path: str, data: Mapping[str, object], benefit_id: Optional[str] = None
    ) -> OperationResult:
        """Append a benefit to a note's benefits section."""

        def run() -> str:
            kind = self.kind_for(path)
            text = self._read_note(path)
            benefit = Benefit(
                id=benefit_id or self._new_benefit_id(),
                title="",
                text="",
                date_created=self._benefit_stamp(),
            )
            self._benefit_from(data, benefit)
            self._write(path, benefit_codec.add_benefit(text, benefit, kind))
            LOGGER.info("Added benefit %s to %s", benefit.id, path)
            return path

        return self._guard(path, run)

    def update_benefit(self, path: str, benefit_id: str, data: Mapping[str, object]) -> OperationResult:
        """Change the fields of one benefit; its id and creation date are kept."""

        def run() -> str:
            kind = self.kind_for(path)
            text = self._read_note(path)
            current = next(
                (item for item in benefit_codec.read_benefits(text) if item.id == benefit_id), None
            )
            if current is None:
                raise LibraryError("Benefit not found")
            benefit = self._benefit_from(data, current)
            if not benefit.date_created:
                benefit.date_created = self._benefit_stamp()
            benefit.date_modified = self._benefit_stamp()
            updated = benefit_codec.replace_benefit(text, benefit_id, benefit, kind)
            if updated is None:
                raise LibraryError("Benefit not found")
            self._write(path, updated)
            return path

        return self._guard(path, run)

    def delete_benefit(self, path: str, benefit_id: str) -> OperationResult:
        def run() -> str:
            self.kind_for(path)
            updated = benefit_codec.remove_benefit(self._read_note(path), benefit_id)
            if updated is None:
                raise LibraryError("Benefit not found")
            self._write(path, updated)
            LOGGER.info("Deleted benefit %s from %s", benefit_id, path)
            return path

        return self._guard(path, run)

    # ------------------------------------------------------------------ bulk

    def _bulk(self, paths: Sequence[str], operation: Callable[[str], OperationResult]) -> BulkResult:
        result = BulkResult()
        for path in paths:
            result.record(operation(path), path)
        LOGGER.info("Bulk operation: %d succeeded, %d failed", result.success, result.failed)
        return result

    def bulk_update_status(self, paths: Sequence[str], status: str) -> BulkResult:
        return self._bulk(paths, lambda path: self.update_status(path, status))

    def bulk_add_tag(self, paths: Sequence[str], tag: str) -> BulkResult:
        def add(path: str) -> OperationResult:
            try:
                _, block = self._read_block(path)
            except (LibraryError, OSError) as exc:
                return OperationResult(ok=False, path=path, error=str(exc))
            current = normalize_list(block.get(self.config.fields.tags))
            if tag in current:
                return OperationResult(ok=True, path=path)
            return self.update_tags(path, [*current, tag])

        return self._bulk(paths, add)

    def bulk_update_categories(
        self, paths: Sequence[str], categories: Sequence[str], mode: str = "replace"
    ) -> BulkResult:
        if mode not in BULK_MODES:
            raise ValueError(f"mode must be one of {', '.join(BULK_MODES)}, got {mode!r}")

        def apply(path: str) -> OperationResult:
            fresh = list(categories)
            if mode == "append":
                try:
                    _, block = self._read_block(path)
                except (LibraryError, OSError) as exc:
                    return OperationResult(ok=False, path=path, error=str(exc))
                fresh = normalize_list([*normalize_list(block.get(self.config.fields.categories)), *fresh])
            return self.update_categories(path, fresh)

        return self._bulk(paths, apply)

    def bulk_delete(self, paths: Sequence[str]) -> BulkResult:
        return self._bulk(paths, self.delete)


def set_description(text: str, description: str) -> str:
    """Replace or insert the description section of a note body.

    The metadata block is left untouched. Without an existing section the new one
    goes right before the notes section, or at the end.
    """
    decoded = decode(text)
    body = decoded[1] if decoded is not None else text
    head = text[: len(text) - len(body)]

    heading = re.compile(rf"^{re.escape(DESCRIPTION_HEADING)}[ \t]*$", re.MULTILINE)
    match = heading.search(body)
    if match:
        following = re.compile(r"^##\s", re.MULTILINE).search(body, match.end())
        end = following.start() if following else len(body)
        if following:
            return head + body[: match.end()] + "\n\n" + description + "\n\n" + body[end:]
        return head + body[: match.end()] + "\n\n" + description + "\n"

    section = f"{DESCRIPTION_HEADING}\n\n{description}\n\n"
    notes = re.compile(rf"^{re.escape(NOTES_HEADING)}[ \t]*$", re.MULTILINE).search(body)
    if notes:
        return head + body[: notes.start()] + section + body[notes.start() :]
    return head + body.rstrip("\n") + "\n\n" + section.rstrip("\n") + "\n"
