"""Per-kind projections from metadata blocks to records and folder data.

Everything here is a pure function of a decoded block and the configuration, so the
service and the index share one reading of each kind without subclassing.
"""

from __future__ import annotations

import dataclasses
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from librarynotes.config import KIND_BOOK, KIND_VIDEO, LibraryConfig
from librarynotes.metadata.codec import MetadataBlock
from librarynotes.models import BookRecord, FolderData, PlaylistRecord, Record, VideoRecord
from librarynotes.utils.durations import ZERO_DURATION, hms_to_seconds
from librarynotes.utils.files import NOTE_SUFFIX, name_of
from librarynotes.utils.text import as_int, as_text, first_item, normalize_list

FolderProjection = Callable[[Mapping[str, object], LibraryConfig], FolderData]

# Logical fields in the order they are written into a new note.
VIDEO_FIELD_ORDER: Tuple[str, ...] = (
    "type",
    "title",
    "presenter",
    "duration",
    "url",
    "video_id",
    "status",
    "language",
    "date_added",
    "start_date",
    "completion_date",
    "categories",
    "tags",
    "thumbnail",
)
PLAYLIST_FIELD_ORDER: Tuple[str, ...] = (
    "type",
    "title",
    "presenter",
    "item_count",
    "total_duration",
    "playlist_url",
    "playlist_id",
    "status",
    "language",
    "date_added",
    "start_date",
    "completion_date",
    "categories",
    "tags",
    "thumbnail",
)
BOOK_FIELD_ORDER: Tuple[str, ...] = (
    "type",
    "title",
    "author",
    "page_count",
    "publisher",
    "publish_year",
    "status",
    "language",
    "date_added",
    "start_date",
    "completion_date",
    "categories",
    "tags",
    "cover",
    "rating",
)


def _project(block: Mapping[str, object], config: LibraryConfig, party_key: str) -> FolderData:
    names = config.fields
    return FolderData(
        type=as_text(block.get(names.type)),
        party=as_text(block.get(party_key)),
        date=as_text(block.get(names.date_added)),
        category=first_item(block.get(names.categories)),
    )


def project_video_folder(block: Mapping[str, object], config: LibraryConfig) -> FolderData:
    return _project(block, config, config.fields.presenter)


def project_book_folder(block: Mapping[str, object], config: LibraryConfig) -> FolderData:
    return _project(block, config, config.fields.author)


def projection_for(kind: str) -> FolderProjection:
    return project_book_folder if kind == KIND_BOOK else project_video_folder


def folder_keys(config: LibraryConfig, kind: str) -> Tuple[str, ...]:
    """Metadata keys whose change can move a note to another folder."""
    names = config.fields
    return (names.type, config.party_key(kind), names.categories)


def field_order(config: LibraryConfig, kind: str, type_label: str = "") -> Tuple[str, ...]:
    if kind == KIND_BOOK:
        return BOOK_FIELD_ORDER
    if type_label == config.types.playlist:
        return PLAYLIST_FIELD_ORDER
    return VIDEO_FIELD_ORDER


def to_metadata(data: Mapping[str, object], config: LibraryConfig) -> Dict[str, object]:
    """Translate logical field names (``title``, ``presenter``...) into metadata keys.

    Keys that are not logical field names are passed through unchanged, so callers
    may also address a note's own custom fields directly.
    """
    names = config.fields
    mapping = {item.name: getattr(names, item.name) for item in dataclasses.fields(names)}
    return {mapping.get(key, key): value for key, value in data.items()}


def note_title(block: MetadataBlock, config: LibraryConfig, path: str) -> str:
    title = as_text(block.get(config.fields.title))
    if title:
        return title
    name = name_of(path)
    return name[: -len(NOTE_SUFFIX)] if name.endswith(NOTE_SUFFIX) else name


def _common(
    block: MetadataBlock, path: str, kind: str, config: LibraryConfig, fallback_date: str
) -> Dict[str, object]:
    names = config.fields
    settings = config.kind(kind)
    return {
        "title": note_title(block, config, path),
        "path": path,
        "status": as_text(block.get(names.status), settings.default_status),
        "date_added": as_text(block.get(names.date_added), fallback_date),
        "language": as_text(block.get(names.language)),
        "start_date": as_text(block.get(names.start_date)),
        "completion_date": as_text(block.get(names.completion_date)),
        "categories": normalize_list(block.get(names.categories)),
        "tags": normalize_list(block.get(names.tags)),
    }


def build_video_record(
    block: MetadataBlock, path: str, config: LibraryConfig, fallback_date: str
) -> Record:
    """Build a video or playlist record from a note under the video root."""
    names = config.fields
    settings = config.video
    type_label = as_text(block.get(names.type))
    presenter = as_text(block.get(names.presenter), settings.default_party)
    url = as_text(block.get(names.url)) or as_text(block.get(names.playlist_url))
    common = _common(block, path, KIND_VIDEO, config, fallback_date)
    thumbnail = as_text(block.get(names.thumbnail))

    if type_label == config.types.playlist:
        return PlaylistRecord(
            **common,
            type=type_label,
            presenter=presenter,
            item_count=as_int(block.get(names.item_count)),
            duration=as_text(block.get(names.total_duration), ZERO_DURATION),
            url=url,
            playlist_id=as_text(block.get(names.playlist_id)),
            thumbnail_url=thumbnail,
        )

    duration = as_text(block.get(names.duration), ZERO_DURATION)
    return VideoRecord(
        **common,
        type=type_label or settings.generic_type,
        presenter=presenter,
        duration=duration,
        duration_seconds=hms_to_seconds(duration),
        url=url,
        video_id=as_text(block.get(names.video_id)),
        thumbnail_url=thumbnail,
    )


def build_book_record(
    block: MetadataBlock, path: str, config: LibraryConfig, fallback_date: str
) -> Optional[Record]:
    """Build a book record, or None when the note is not typed as a book."""
    names = config.fields
    type_label = as_text(block.get(names.type))
    if type_label != config.types.book:
        return None
    return BookRecord(
        **_common(block, path, KIND_BOOK, config, fallback_date),
        type=type_label,
        author=as_text(block.get(names.author), config.book.default_party),
        page_count=as_int(block.get(names.page_count)),
        publisher=as_text(block.get(names.publisher)),
        publish_year=as_text(block.get(names.publish_year)),
        cover_url=as_text(block.get(names.cover)),
        rating=as_int(block.get(names.rating)),
    )


def build_record(
    block: MetadataBlock,
    path: str,
    kind: str,
    config: LibraryConfig,
    fallback_date: str,
) -> Optional[Record]:
    if kind == KIND_BOOK:
        return build_book_record(block, path, config, fallback_date)
    return build_video_record(block, path, config, fallback_date)


def ordered_fields(
    metadata: Mapping[str, object], config: LibraryConfig, kind: str
) -> Dict[str, object]:
    """Order ``metadata`` by the kind's canonical field order; extras follow."""
    type_label = as_text(metadata.get(config.fields.type))
    order: List[str] = [getattr(config.fields, name) for name in field_order(config, kind, type_label)]
    result: Dict[str, object] = {key: metadata[key] for key in order if key in metadata}
    for key, value in metadata.items():
        result.setdefault(key, value)
    return result
