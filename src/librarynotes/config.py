"""Application configuration defaults."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import toml
from pydantic import TypeAdapter, ValidationError

LOGGER = logging.getLogger(__name__)

KIND_VIDEO = "video"
KIND_BOOK = "book"
CONTENT_KINDS = (KIND_VIDEO, KIND_BOOK)

DEFAULT_CONFIG_NAME = "librarynotes.toml"


class ConfigError(ValueError):
    """Raised when a configuration mapping does not fit the schema."""


@dataclass(slots=True)
class FieldNames:
    """Literal metadata keys used for each logical field."""

    type: str = "النوع"
    title: str = "العنوان"
    presenter: str = "الملقي"
    author: str = "المؤلف"
    status: str = "الحالة"
    language: str = "اللغة"
    date_added: str = "تاريخ الإضافة"
    start_date: str = "تاريخ البدء"
    completion_date: str = "تاريخ الانتهاء"
    categories: str = "التصنيفات"
    tags: str = "الوسوم"
    duration: str = "المدة"
    total_duration: str = "المدة الإجمالية"
    url: str = "رابط"
    playlist_url: str = "رابط السلسلة"
    video_id: str = "معرف المقطع"
    playlist_id: str = "معرف السلسلة"
    item_count: str = "عدد المقاطع"
    thumbnail: str = "الصورة المصغرة"
    page_count: str = "عدد الصفحات"
    publisher: str = "الناشر"
    publish_year: str = "سنة النشر"
    cover: str = "صورة الغلاف"
    rating: str = "التقييم"


@dataclass(slots=True)
class TypeLabels:
    """Values of the type field that discriminate record kinds."""

    video: str = "مقطع"
    playlist: str = "سلسلة"
    book: str = "كتاب"


@dataclass(slots=True)
class FolderRules:
    enabled: bool = True
    template: str = "{type}/{presenter}"


@dataclass(slots=True)
class StatusLifecycle:
    """Statuses that drive start/completion date bookkeeping."""

    completed: str = ""
    in_progress: str = ""
    idle: List[str] = field(default_factory=list)


@dataclass(slots=True)
class KindSettings:
    root_folder: str
    default_party: str = "غير معروف"
    default_status: str = ""
    status_options: List[str] = field(default_factory=list)
    folder_rules: FolderRules = field(default_factory=FolderRules)
    lifecycle: StatusLifecycle = field(default_factory=StatusLifecycle)
    generic_type: str = ""
    general_category: str = "عام"


def default_video_settings() -> KindSettings:
    return KindSettings(
        root_folder="الفيديوهات",
        default_status="لم يشاهد",
        status_options=["في قائمة الانتظار", "تمت المشاهدة", "قيد المشاهدة", "لم يشاهد"],
        folder_rules=FolderRules(enabled=True, template="{type}/{presenter}"),
        lifecycle=StatusLifecycle(
            completed="تمت المشاهدة",
            in_progress="قيد المشاهدة",
            idle=["لم يشاهد", "في قائمة الانتظار"],
        ),
        generic_type="مقطع",
    )


def default_book_settings() -> KindSettings:
    return KindSettings(
        root_folder="الكتب",
        default_status="لم يُقرأ",
        status_options=["في قائمة القراءة", "تمت القراءة", "قيد القراءة", "لم يُقرأ"],
        folder_rules=FolderRules(enabled=True, template="{type}/{author}"),
        lifecycle=StatusLifecycle(
            completed="تمت القراءة",
            in_progress="قيد القراءة",
            idle=["لم يُقرأ", "في قائمة القراءة"],
        ),
        generic_type="كتاب",
    )


@dataclass(slots=True)
class LibraryConfig:
    library_dir: Path | None = None
    date_format: str = "YYYY-MM-DD"
    max_filename_length: int = 100
    fields: FieldNames = field(default_factory=FieldNames)
    types: TypeLabels = field(default_factory=TypeLabels)
    video: KindSettings = field(default_factory=default_video_settings)
    book: KindSettings = field(default_factory=default_book_settings)
    extra_list_keys: List[str] = field(default_factory=lambda: ["tags", "categories"])

    def __post_init__(self) -> None:
        if self.library_dir is None:
            self.library_dir = Path(".")

    @property
    def list_keys(self) -> Tuple[str, ...]:
        """Keys written as multi-line lists rather than inline values."""
        keys = [self.fields.tags, self.fields.categories, *self.extra_list_keys]
        return tuple(dict.fromkeys(keys))

    def kind(self, kind: str) -> KindSettings:
        if kind == KIND_VIDEO:
            return self.video
        if kind == KIND_BOOK:
            return self.book
        raise ConfigError(f"Unknown content kind: {kind!r}")

    def party_key(self, kind: str) -> str:
        return self.fields.author if kind == KIND_BOOK else self.fields.presenter

    def kind_for_path(self, path: str) -> Optional[str]:
        """Guess the content kind of a library path from its root folder."""
        for kind in CONTENT_KINDS:
            root = self.kind(kind).root_folder.rstrip("/")
            if path == root or path.startswith(root + "/"):
                return kind
        return None

    def resolve_library_dir(self, base_dir: Path | None = None) -> Path:
        if self.library_dir is None:
            self.library_dir = Path(".")
        if Path(self.library_dir).is_absolute() or base_dir is None:
            return Path(self.library_dir)
        return base_dir / self.library_dir

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LibraryConfig":
        """Build a configuration by overlaying ``data`` on the defaults.

        Unknown keys and values of the wrong type raise :class:`ConfigError`.
        """
        defaults = dataclasses.asdict(cls())
        _check_keys(defaults, data, "config")
        try:
            config = TypeAdapter(cls).validate_python(_deep_merge(defaults, data))
        except ValidationError as exc:
            raise ConfigError(_describe(exc)) from exc
        if config.library_dir is not None:
            config.library_dir = Path(config.library_dir).expanduser()
        if config.max_filename_length <= 0:
            raise ConfigError("max_filename_length must be positive")
        return config


def _check_keys(defaults: Mapping[str, Any], data: Any, section: str) -> None:
    if not isinstance(data, Mapping):
        raise ConfigError(f"Section '{section}' must be a table, got {type(data).__name__}")
    for key, value in data.items():
        if key not in defaults:
            raise ConfigError(f"Unknown setting '{section}.{key}'")
        if isinstance(defaults[key], dict):
            _check_keys(defaults[key], value, f"{section}.{key}")


def _describe(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        problems.append(f"config.{location}: {error['msg']}")
    return "Invalid configuration: " + "; ".join(problems)


def _deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, Mapping):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> LibraryConfig:
    """Load configuration from a TOML file, falling back to defaults.

    An explicitly passed path must exist. Without one, ``librarynotes.toml`` in the
    working directory is used when present.
    """
    data: Dict[str, Any] = {}
    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
    else:
        path = Path(DEFAULT_CONFIG_NAME)

    if path.exists():
        LOGGER.info("Loading configuration from %s", path)
        try:
            data = toml.load(path)
        except toml.TomlDecodeError as exc:
            raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc
    else:
        LOGGER.debug("No configuration file found, using defaults")

    if overrides:
        data = _deep_merge(data, overrides)
    return LibraryConfig.from_dict(data)
