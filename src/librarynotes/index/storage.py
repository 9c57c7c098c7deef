"""Filesystem collaborator for reading and moving library notes."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import List, Protocol

from librarynotes.utils.files import join_path, parent_of

LOGGER = logging.getLogger(__name__)


class StoragePathError(ValueError):
    """Raised for a library path that would leave the library folder."""


class Storage(Protocol):
    """Operations the library needs from whatever holds the notes.

    Paths are ``/``-separated and relative to the library root.
    """

    def list(self, path: str) -> List[str]: ...

    def read(self, path: str) -> str: ...

    def write(self, path: str, text: str) -> None: ...

    def create_dir(self, path: str) -> bool: ...

    def move(self, src: str, dst: str) -> bool: ...

    def exists(self, path: str) -> bool: ...

    def is_dir(self, path: str) -> bool: ...

    def ctime(self, path: str) -> datetime: ...

    def delete(self, path: str) -> None: ...

    def prune_empty_dirs(self, folder: str, stop_at: str) -> List[str]: ...


class LocalStorage:
    """Storage backed by a directory on the local disk."""

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)

    def _abs(self, path: str) -> Path:
        parts = [part for part in path.split("/") if part and part != "."]
        if ".." in parts:
            raise StoragePathError(f"Path leaves the library folder: {path!r}")
        return self.base_dir.joinpath(*parts)

    def list(self, path: str) -> List[str]:
        """Return the library paths of the direct children of ``path``, sorted."""
        folder = self._abs(path)
        if not folder.is_dir():
            return []
        return sorted(join_path(path, child.name) for child in folder.iterdir())

    def read(self, path: str) -> str:
        return self._abs(path).read_text(encoding="utf-8")

    def write(self, path: str, text: str) -> None:
        target = self._abs(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".tmp-", suffix=target.suffix, dir=target.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                handle.write(text)
            os.replace(tmp_name, target)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def create_dir(self, path: str) -> bool:
        try:
            self._abs(path).mkdir(parents=True, exist_ok=True)
        except (OSError, StoragePathError) as exc:
            LOGGER.error("Failed to create folder %s: %s", path, exc)
            return False
        return True

    def move(self, src: str, dst: str) -> bool:
        """Rename ``src`` to ``dst``; never overwrites an existing destination."""
        try:
            source = self._abs(src)
            target = self._abs(dst)
        except StoragePathError as exc:
            LOGGER.error("Cannot move %s to %s: %s", src, dst, exc)
            return False
        if not source.exists():
            LOGGER.error("Cannot move %s: source does not exist", src)
            return False
        if target.exists():
            LOGGER.error("Cannot move %s: %s already exists", src, dst)
            return False
        if not self.create_dir(parent_of(dst)):
            return False
        try:
            source.rename(target)
        except OSError as exc:
            LOGGER.error("Failed to move %s to %s: %s", src, dst, exc)
            return False
        return True

    def exists(self, path: str) -> bool:
        return self._abs(path).exists()

    def is_dir(self, path: str) -> bool:
        return self._abs(path).is_dir()

    def ctime(self, path: str) -> datetime:
        stat = self._abs(path).stat()
        created = getattr(stat, "st_birthtime", None) or stat.st_ctime
        return datetime.fromtimestamp(created)

    def delete(self, path: str) -> None:
        target = self._abs(path)
        if target.is_dir():
            shutil.rmtree(target)
        else:
            target.unlink()

    def prune_empty_dirs(self, folder: str, stop_at: str) -> List[str]:
        """Remove ``folder`` and its ancestors while they are empty.

        ``stop_at`` itself is never removed, nor anything outside it.
        """
        removed: List[str] = []
        stop = stop_at.strip("/")
        current = folder.strip("/")
        while current and current != stop and current.startswith(stop + "/" if stop else ""):
            target = self._abs(current)
            if not target.is_dir() or any(target.iterdir()):
                break
            try:
                target.rmdir()
            except OSError as exc:
                LOGGER.warning("Could not remove empty folder %s: %s", current, exc)
                break
            LOGGER.debug("Removed empty folder %s", current)
            removed.append(current)
            current = parent_of(current)
        return removed
