"""Логирование LLMSScout.

Один корневой логгер ``LLMSScout`` с обработчиком на stderr (stdout занят
сгенерированным документом) и необязательным файлом с ротацией. Модули
пишут в дочерние логгеры, например ``LLMSScout.crawler``, ``LLMSScout.llm``
или ``LLMSScout.events``, и наследуют обработчики корня::

    log = get_logger("crawler")
    log.info("Batch %d: %d page(s)", index, len(pages))

CLI вызывает :func:`init_logging` с уровнем и файлом из опций
``--log-level``/``--log-file``.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Union

_DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_ROOT_NAME: Final[str] = "LLMSScout"
_MAX_LOG_BYTES: Final[int] = 5 * 1024 * 1024

_LevelT = Union[int, str]


def _stderr_handler(fmt: str) -> logging.StreamHandler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _rotating_handler(path: Path | str, fmt: str) -> RotatingFileHandler:
    handler = RotatingFileHandler(str(path), maxBytes=_MAX_LOG_BYTES, backupCount=3, encoding="utf-8")
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def get_logger(suffix: str | None = None) -> logging.Logger:
    """``LLMSScout`` itself, or its child ``LLMSScout.<suffix>``."""
    return logging.getLogger(f"{_ROOT_NAME}.{suffix}" if suffix else _ROOT_NAME)


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """Настроить корневой логгер проекта.

    ``log_file=None`` оставляет только stderr. При ``replace_handlers=False``
    новые обработчики добавляются к уже установленным.
    """
    root = get_logger()
    root.setLevel(level)
    if replace_handlers:
        root.handlers.clear()
    root.addHandler(_stderr_handler(log_format))
    if log_file is not None:
        root.addHandler(_rotating_handler(log_file, log_format))
    # the host application's root logger must not duplicate our records
    root.propagate = False
    return root


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
) -> logging.Logger:
    return configure(level=level, log_file=log_file, log_format=log_format, replace_handlers=True)


logger: logging.Logger = init_logging()

__all__ = ["logger", "configure", "init_logging", "get_logger"]
