# File: llms_scout/events.py
"""llms_scout.events: структурированные события деградации (пропуски, сбои, откаты)."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from llms_scout.logger import get_logger

# event kind → log level
_LEVELS: Dict[str, int] = {
    "http_error": logging.WARNING,
    "timeout": logging.WARNING,
    "navigation_error": logging.WARNING,
    "already_visited": logging.INFO,
    "thin_content": logging.INFO,
    "section_skipped": logging.INFO,
    "section_failed": logging.WARNING,
    "consolidation_fallback": logging.WARNING,
    "link_dropped": logging.INFO,
}


@dataclass(frozen=True, slots=True)
class CrawlEvent:
    """Одно наблюдаемое событие: что случилось, где и в какой партии."""

    kind: str
    url: Optional[str] = None
    detail: str = ""
    batch: Optional[int] = None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


class EventLog:
    """Append-only журнал событий; каждое событие также уходит в лог."""

    def __init__(self, name: str = "events") -> None:
        self.events: List[CrawlEvent] = []
        self._logger = get_logger(name)

    def record(
        self,
        kind: str,
        url: Optional[str] = None,
        detail: str = "",
        batch: Optional[int] = None,
    ) -> CrawlEvent:
        event = CrawlEvent(kind=kind, url=url, detail=detail, batch=batch)
        self.events.append(event)
        self._logger.log(
            _LEVELS.get(kind, logging.INFO),
            "%s%s%s%s",
            kind,
            f" [batch {batch}]" if batch is not None else "",
            f" {url}" if url else "",
            f": {detail}" if detail else "",
        )
        return event

    def of_kind(self, kind: str) -> List[CrawlEvent]:
        return [e for e in self.events if e.kind == kind]

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self):
        return iter(self.events)
