# === FILE: llms_scout/config.py ===
"""
Модуль для загрузки и валидации конфигурации LLMSScout.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
)


class CrawlMode(str, Enum):
    SHORT = "short"
    FULL = "full"


class ModelTier(str, Enum):
    FAST = "fast"
    LARGE = "large"


DEFAULT_CONTENT_SELECTORS: List[str] = [
    "main",
    "article",
    "[role=main]",
    "#content",
    ".content",
    "#main",
    ".main-content",
    ".post-content",
    ".docs-content",
    ".documentation",
]

DEFAULT_PROBE_PREFIXES: List[str] = ["docs", "developer", "developers", "api", "help", "support", "community"]


class CrawlBudget(BaseModel):
    """Лимиты одного режима обхода."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_pages: int = Field(50, ge=1, description="Жесткий лимит по числу посещённых страниц.")
    max_depth: int = Field(2, ge=0, description="Максимальная глубина обхода ссылок.")
    batch_size: int = Field(20, ge=1, description="Страниц в одной партии.")
    concurrency: int = Field(5, ge=1, description="Одновременных загрузок внутри партии.")
    content_chars: int = Field(5000, ge=200, description="Лимит текста страницы (символов).")
    model_tier: ModelTier = ModelTier.FAST


class GenerationConfig(BaseModel):
    """Настройки генеративной модели."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    api_key: Optional[SecretStr] = Field(None, validate_default=True, description="Ключ API; по умолчанию GEMINI_API_KEY.")
    fast_model: str = "gemini-2.0-flash"
    large_model: str = "gemini-2.5-flash"
    temperature: float = Field(0.2, ge=0.0, le=1.0)
    fast_max_tokens: int = Field(2048, ge=64)
    large_max_tokens: int = Field(8192, ge=64)
    timeout: float = Field(120.0, gt=0, description="Таймаут одного вызова модели (секунд).")

    @field_validator("api_key", mode="before")
    def _key_from_env(cls, v: Any) -> Any:
        if v in (None, ""):
            return os.environ.get("GEMINI_API_KEY") or None
        return v


class ScoutConfig(BaseModel):
    """Конфигурация для одного запуска генерации."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    mode: CrawlMode = Field(CrawlMode.SHORT, description="short → llms.txt, full → llms-full.txt.")
    short: CrawlBudget = CrawlBudget()
    full: CrawlBudget = CrawlBudget(
        max_pages=300, max_depth=5, batch_size=50, concurrency=8,
        content_chars=3000, model_tier=ModelTier.LARGE,
    )

    navigation_timeout: float = Field(30.0, gt=0, description="Ожидание networkidle (секунд).")
    fallback_timeout: float = Field(15.0, gt=0, description="Ожидание domcontentloaded (секунд).")
    settle_delay: float = Field(1.0, ge=0, description="Пауза после загрузки для JS (секунд).")
    user_agent: str = Field(
        "Mozilla/5.0 (compatible; LLMSScout/1.0)", min_length=1, description="Заголовок User-Agent."
    )

    seed_link_priority: float = Field(2.0, gt=0, description="Базовый приоритет ссылок с главной.")
    discovered_link_priority: float = Field(1.0, gt=0, description="Базовый приоритет остальных ссылок.")
    max_links_per_page: int = Field(300, ge=1)
    min_content_chars: int = Field(100, ge=0, description="Короче: страница не идёт в генерацию.")
    content_selectors: List[str] = Field(default_factory=lambda: list(DEFAULT_CONTENT_SELECTORS))

    probe_subdomains: bool = True
    probe_prefixes: List[str] = Field(default_factory=lambda: list(DEFAULT_PROBE_PREFIXES))
    probe_timeout: float = Field(5.0, gt=0)
    use_sitemap: bool = False

    generation: GenerationConfig = Field(default_factory=GenerationConfig)

    @field_validator("content_selectors")
    def _selectors_not_empty(cls, v: List[str]) -> List[str]:
        cleaned = [s.strip() for s in v if s and s.strip()]
        if not cleaned:
            raise ValueError("content_selectors must contain at least one selector")
        return cleaned

    @property
    def budget(self) -> CrawlBudget:
        """Бюджет активного режима."""
        return self.full if self.mode is CrawlMode.FULL else self.short

    def with_overrides(self, *, mode: Optional[str] = None, limit: Optional[int] = None) -> ScoutConfig:
        """Возвращает копию конфига с переопределениями из CLI."""
        cfg = self
        if mode is not None:
            cfg = cfg.model_copy(update={"mode": CrawlMode(mode)})
        if limit is not None:
            field_name = cfg.mode.value
            budget = getattr(cfg, field_name).model_copy(update={"max_pages": limit})
            cfg = cfg.model_copy(update={field_name: budget})
        return cfg


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> ScoutConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект ScoutConfig.
    Без пути берёт configs/default.yaml, а если его нет, значения по умолчанию.
    Явно указанный, но отсутствующий файл: FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return ScoutConfig()
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
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    try:
        return ScoutConfig(**data)
    except ValidationError:
        raise
