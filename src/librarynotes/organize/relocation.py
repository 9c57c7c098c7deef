"""Moves notes whose folder-affecting metadata changed."""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Optional

from librarynotes.index.storage import Storage
from librarynotes.models import FolderData
from librarynotes.utils.files import is_sub_path, join_path, name_of, parent_of

LOGGER = logging.getLogger(__name__)

Projection = Callable[[Mapping[str, object]], FolderData]
ResolveFn = Callable[[FolderData], str]


class RelocationEngine:
    """Compares a note's current folder with the resolved one and moves it if needed."""

    def __init__(self, storage: Storage) -> None:
        self.storage = storage

    def target_folder(
        self,
        fields_before: Mapping[str, object],
        fields_after: Mapping[str, object],
        resolve_fn: ResolveFn,
        project: Optional[Projection] = None,
    ) -> str:
        """Folder the note belongs in once ``fields_after`` are applied."""
        merged = {**fields_before, **fields_after}
        folder_data = project(merged) if project is not None else FolderData(**merged)
        return resolve_fn(folder_data)

    def relocate_if_needed(
        self,
        old_path: str,
        fields_before: Mapping[str, object],
        fields_after: Mapping[str, object],
        rules_enabled: bool,
        resolve_fn: ResolveFn,
        root_folder: str,
        project: Optional[Projection] = None,
    ) -> str:
        """Return the note's path after relocation.

        The path is unchanged when rules are disabled, when the resolved folder equals
        the current one, or when the move fails.
        """
        if not rules_enabled:
            return old_path

        target_folder = self.target_folder(fields_before, fields_after, resolve_fn, project)
        current_folder = parent_of(old_path)
        if target_folder == current_folder:
            return old_path

        new_path = join_path(target_folder, name_of(old_path))
        if not self.storage.create_dir(target_folder):
            LOGGER.warning("Could not create folder %s; %s stays in place", target_folder, old_path)
            return old_path
        if not self.storage.move(old_path, new_path):
            LOGGER.warning("Could not move %s to %s; keeping the current location", old_path, new_path)
            return old_path

        LOGGER.info("Moved %s to %s", old_path, new_path)
        if is_sub_path(root_folder, current_folder):
            self.storage.prune_empty_dirs(current_folder, root_folder)
        return new_path
