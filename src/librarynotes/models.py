"""Core librarynotes data models."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Union

RECORD_VIDEO = "video"
RECORD_PLAYLIST = "playlist"
RECORD_BOOK = "book"


@dataclass(slots=True, kw_only=True)
class BaseRecord(ABC):
    """Fields every library entry carries, whatever its kind."""

    title: str
    path: str
    kind: str
    type: str
    status: str
    date_added: str
    language: str = ""
    start_date: str = ""
    completion_date: str = ""
    categories: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)

    @property
    @abstractmethod
    def party(self) -> str:
        """Presenter or author, depending on the kind."""

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["party"] = self.party
        return data


@dataclass(slots=True, kw_only=True)
class VideoRecord(BaseRecord):
    presenter: str
    duration: str = "00:00:00"
    duration_seconds: int = 0
    url: str = ""
    video_id: str = ""
    thumbnail_url: str = ""
    kind: str = RECORD_VIDEO

    @property
    def party(self) -> str:
        return self.presenter


@dataclass(slots=True, kw_only=True)
class PlaylistRecord(BaseRecord):
    presenter: str
    item_count: int = 0
    duration: str = "00:00:00"
    url: str = ""
    playlist_id: str = ""
    thumbnail_url: str = ""
    kind: str = RECORD_PLAYLIST

    @property
    def party(self) -> str:
        return self.presenter


@dataclass(slots=True, kw_only=True)
class BookRecord(BaseRecord):
    author: str
    page_count: int = 0
    publisher: str = ""
    publish_year: str = ""
    cover_url: str = ""
    rating: int = 0
    kind: str = RECORD_BOOK

    @property
    def party(self) -> str:
        return self.author


Record = Union[VideoRecord, PlaylistRecord, BookRecord]


@dataclass(slots=True, kw_only=True)
class Benefit:
    """One entry of the benefits section in a note body.

    ``page`` and ``volume`` locate a book benefit, ``timestamp`` (seconds) a video
    one. ``path``, ``kind``, ``parent_title`` and ``party`` describe the note the
    benefit was read from.
    """

    id: str
    title: str
    text: str
    date_created: str = ""
    date_modified: str = ""
    page: Optional[int] = None
    volume: Optional[int] = None
    timestamp: Optional[int] = None
    categories: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    path: str = ""
    kind: str = ""
    parent_title: str = ""
    party: str = ""


@dataclass(slots=True)
class FolderData:
    """Projection of the metadata fields that feed folder resolution."""

    type: str = ""
    party: str = ""
    date: str = ""
    category: Optional[str] = None

    def as_fields(self) -> Dict[str, str]:
        fields: Dict[str, str] = {}
        if self.type:
            fields["type"] = self.type
        if self.party:
            fields["party"] = self.party
            fields["presenter"] = self.party
            fields["author"] = self.party
        if self.date:
            fields["date"] = self.date
        if self.category:
            fields["category"] = self.category
        return fields


@dataclass(slots=True)
class Facets:
    parties: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)


@dataclass(slots=True)
class ScanStats:
    scanned: int = 0
    indexed: int = 0
    skipped: int = 0
    failed: int = 0
    messages: List[str] = field(default_factory=list)

    def increment(self, status: str, path: str, message: str = "") -> None:
        if status == "indexed":
            self.indexed += 1
        elif status == "skipped":
            self.skipped += 1
        else:
            self.failed += 1
        self.scanned += 1
        if message:
            self.messages.append(f"{path}: {message}")


@dataclass(slots=True)
class ScanResult:
    records: List[Record] = field(default_factory=list)
    facets: Facets = field(default_factory=Facets)
    stats: ScanStats = field(default_factory=ScanStats)


@dataclass(slots=True)
class OperationResult:
    ok: bool
    path: str = ""
    error: str = ""


@dataclass(slots=True)
class BulkResult:
    success: int = 0
    failed: int = 0
    messages: List[str] = field(default_factory=list)

    def record(self, result: OperationResult, path: str) -> None:
        if result.ok:
            self.success += 1
        else:
            self.failed += 1
            self.messages.append(f"{path}: {result.error or 'failed'}")
