"""
Модуль для загрузки и валидации конфигурации SiteBinder.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from enum import Enum
from pathlib import Path
from typing import Any, Literal, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

__all__ = ("SaveMode", "ConversionOptions", "BinderConfig", "load_config")


class SaveMode(str, Enum):
    COMBINED = "combined"
    SEPARATE = "separate"


class ConversionOptions(BaseModel):
    """Options of one conversion job.

    Accepts the camelCase keys used by job submitters (``maxDepth``) as well as
    the snake_case field names. Unknown keys are ignored.
    """

    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    max_depth: int = Field(1, ge=0, description="Максимальная глубина обхода ссылок.")
    max_pages: int = Field(10, ge=1, description="Жесткий лимит по числу страниц.")
    include_images: bool = Field(True, description="Встраивать изображения страниц.")
    include_screenshot: bool = Field(False, description="Добавлять скриншот страницы.")
    include_sitemap: bool = Field(True, description="Добавлять диаграмму структуры сайта.")
    include_links: bool = Field(True, description="Добавлять раздел ссылок страницы.")
    save_mode: SaveMode = Field(SaveMode.COMBINED, description="combined или separate.")
    title: Optional[str] = Field(None, description="Заголовок итогового документа.")
    wait_time: float = Field(0.0, ge=0, description="Доп. ожидание после загрузки (секунд).")
    output_dir: Optional[Path] = Field(None, description="Каталог для режима separate.")

    @field_validator("title", mode="before")
    def _blank_title_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @classmethod
    def field_keys(cls, data: Optional[Mapping[str, Any]]) -> dict[str, Any]:
        """Rename camelCase keys of *data* to field names. Unknown keys pass through."""
        by_alias = {field.alias or name: name for name, field in cls.model_fields.items()}
        return {by_alias.get(key, key): value for key, value in (data or {}).items()}

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]] = None, **overrides: Any) -> ConversionOptions:
        """Build options from a loose mapping, dropping ``None`` overrides.

        Keyword overrides win over *data*, whichever key style *data* uses.
        """
        merged = cls.field_keys(data)
        merged.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(merged)


class BinderConfig(BaseModel):
    """Runtime settings shared by every job of one process."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    renderer: Literal["http", "browser"] = Field("http", description="Движок загрузки страниц.")
    user_agent: str = Field("SiteBinderBot/1.0", min_length=1, description="Заголовок User-Agent.")
    timeout: float = Field(30.0, gt=0, description="Таймаут навигации (секунд).")
    title_timeout: float = Field(10.0, gt=0, description="Таймаут загрузки заголовка (секунд).")
    retry_times: int = Field(2, ge=0, description="Число повторных попыток при 5xx.")
    output_root: Path = Field(Path("output"), description="Каталог для результатов.")
    temp_prefix: str = Field("site_binder_", min_length=1, description="Префикс временных каталогов.")
    viewport_width: int = Field(1280, gt=0)
    viewport_height: int = Field(800, gt=0)
    full_page_screenshot: bool = False
    defaults: ConversionOptions = Field(default_factory=ConversionOptions)

    def options(self, data: Optional[Mapping[str, Any]] = None, **overrides: Any) -> ConversionOptions:
        """Job options layered over the configured defaults."""
        base = self.defaults.model_dump(exclude_unset=True)
        base.update(ConversionOptions.field_keys(data))
        return ConversionOptions.from_mapping(base, **overrides)


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> BinderConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект BinderConfig.
    Без пути использует configs/default.yaml, а при его отсутствии значения по умолчанию.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return BinderConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    return BinderConfig(**data)
