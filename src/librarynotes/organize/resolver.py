"""Folder resolution from ``{placeholder}`` path templates."""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Dict, Mapping, Optional

from librarynotes.config import LibraryConfig
from librarynotes.models import FolderData
from librarynotes.utils.dates import parse_date
from librarynotes.utils.files import sanitize_file_name

LOGGER = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{([^{}]+)\}")


class PathTemplateResolver:
    """Turns a template such as ``{type}/{presenter}`` into a library folder."""

    def __init__(
        self,
        generic_type: str,
        default_party: str,
        general_category: str,
        max_length: int = 100,
    ) -> None:
        self.generic_type = generic_type
        self.default_party = default_party
        self.general_category = general_category
        self.max_length = max_length

    @classmethod
    def for_kind(cls, config: LibraryConfig, kind: str) -> "PathTemplateResolver":
        settings = config.kind(kind)
        return cls(
            generic_type=settings.generic_type,
            default_party=settings.default_party,
            general_category=settings.general_category,
            max_length=config.max_filename_length,
        )

    def placeholders(
        self, fields: Mapping[str, object], now: Optional[datetime] = None
    ) -> Dict[str, str]:
        values: Dict[str, str] = {
            "type": self.generic_type,
            "presenter": self.default_party,
            "author": self.default_party,
            "party": self.default_party,
            "category": self.general_category,
        }
        for key, value in fields.items():
            if value is None or value == "":
                continue
            values[key] = str(value)

        resolved: date = parse_date(fields.get("date")) or (now or datetime.now()).date()
        values["date"] = resolved.isoformat()
        values["year"] = f"{resolved.year:04d}"
        values["month"] = f"{resolved.month:02d}"
        values["day"] = f"{resolved.day:02d}"
        return values

    def resolve(
        self,
        template: str,
        fields: Mapping[str, object],
        root_folder: str,
        *,
        enabled: bool = True,
        now: Optional[datetime] = None,
    ) -> str:
        if not enabled:
            return root_folder
        values = self.placeholders(fields, now)

        def substitute(match: re.Match) -> str:
            return values.get(match.group(1), match.group(0))

        expanded = PLACEHOLDER_PATTERN.sub(substitute, template)
        segments = [
            sanitize_file_name(segment, self.max_length, now)
            for segment in expanded.split("/")
            if segment.strip()
        ]
        folder = "/".join([root_folder.rstrip("/"), *segments]) if root_folder else "/".join(segments)
        LOGGER.debug("Resolved template %r to %s", template, folder)
        return folder


def resolve_folder(
    config: LibraryConfig,
    kind: str,
    folder_data: FolderData,
    now: Optional[datetime] = None,
) -> str:
    """Resolve the folder for ``folder_data`` using the rules configured for ``kind``."""
    settings = config.kind(kind)
    resolver = PathTemplateResolver.for_kind(config, kind)
    return resolver.resolve(
        settings.folder_rules.template,
        folder_data.as_fields(),
        settings.root_folder,
        enabled=settings.folder_rules.enabled,
        now=now,
    )
