"""Scans a library folder and builds typed records plus facet sets."""

from __future__ import annotations

import logging
from typing import List, Optional, Set

from librarynotes.config import CONTENT_KINDS, LibraryConfig
from librarynotes.index.storage import Storage
from librarynotes.kinds import build_record
from librarynotes.metadata.codec import decode
from librarynotes.models import Facets, Record, ScanResult
from librarynotes.utils.dates import format_date
from librarynotes.utils.files import NOTE_SUFFIX

LOGGER = logging.getLogger(__name__)


def iter_note_paths(storage: Storage, root: str) -> List[str]:
    """Return every ``.md`` note under ``root``, depth first, in sorted order."""
    notes: List[str] = []
    for child in storage.list(root):
        if storage.is_dir(child):
            notes.extend(iter_note_paths(storage, child))
        elif child.lower().endswith(NOTE_SUFFIX):
            notes.append(child)
    return notes


class DocumentIndex:
    """Reads every note of one content kind into records."""

    def __init__(self, storage: Storage, config: LibraryConfig) -> None:
        self.storage = storage
        self.config = config

    def _root_and_kind(self, kind_or_root: str) -> tuple[str, Optional[str]]:
        if kind_or_root in CONTENT_KINDS:
            return self.config.kind(kind_or_root).root_folder, kind_or_root
        return kind_or_root, self.config.kind_for_path(kind_or_root)

    def scan(self, kind_or_root: str) -> ScanResult:
        """Index every note under a content kind's root or one of its sub-folders.

        A missing folder, or one outside both content roots, yields an empty result.
        """
        root, kind = self._root_and_kind(kind_or_root)
        result = ScanResult()
        if not self.storage.exists(root) or not self.storage.is_dir(root):
            LOGGER.info("Content folder %s does not exist", root)
            return result
        if kind is None:
            LOGGER.warning("%s is not inside a content folder, nothing to scan", root)
            return result

        parties: Set[str] = set()
        categories: Set[str] = set()
        tags: Set[str] = set()
        stats = result.stats

        for path in iter_note_paths(self.storage, root):
            try:
                decoded = decode(self.storage.read(path))
                if decoded is None:
                    LOGGER.debug("Skipping %s: no metadata block", path)
                    stats.increment("skipped", path)
                    continue
                block, _ = decoded
                fallback = "" if block.get(self.config.fields.date_added) else self._fallback_date(path)
                record = build_record(block, path, kind, self.config, fallback)
                if record is None:
                    LOGGER.debug("Skipping %s: not a %s note", path, kind)
                    stats.increment("skipped", path)
                    continue
            except Exception as exc:
                LOGGER.error("Failed to index %s: %s", path, exc)
                stats.increment("failed", path, str(exc))
                continue

            result.records.append(record)
            parties.add(record.party)
            categories.update(record.categories)
            tags.update(record.tags)
            stats.increment("indexed", path)

        result.facets = Facets(
            parties=sorted(parties),
            categories=sorted(categories),
            tags=sorted(tags),
        )
        LOGGER.info(
            "Scanned %s: %d indexed, %d skipped, %d failed",
            root,
            stats.indexed,
            stats.skipped,
            stats.failed,
        )
        return result

    def _fallback_date(self, path: str) -> str:
        created = self.storage.ctime(path)
        return format_date(created, self.config.date_format)

    def find(self, kind: str, path: str) -> Optional[Record]:
        """Return the record for ``path`` from a fresh scan, if it is indexed."""
        for record in self.scan(kind).records:
            if record.path == path:
                return record
        return None
