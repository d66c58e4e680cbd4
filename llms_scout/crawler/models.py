"""
Data models for the LLMSScout crawler.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


@dataclass(frozen=True, slots=True)
class OutboundLink:
    """A link found on a page: absolute URL and best-effort anchor text."""

    url: str
    text: str = ""


@dataclass(frozen=True, slots=True)
class PageRecord:
    """One fetched and extracted page. Immutable once produced."""

    url: str
    title: str
    meta_description: str
    headings: Dict[str, Tuple[str, ...]]
    raw_content: str
    outbound_links: Tuple[OutboundLink, ...]
    is_documentation: bool
    depth: int

    def heading_texts(self) -> list[str]:
        """Headings flattened in level order (h1 first)."""
        return [text for level in sorted(self.headings) for text in self.headings[level]]


@dataclass(slots=True)
class FrontierEntry:
    """A candidate URL awaiting a visit."""

    url: str
    anchor_text: str
    priority_score: float
    depth: int


class FailureKind(str, Enum):
    HTTP_ERROR = "http_error"
    TIMEOUT = "timeout"
    NAVIGATION_ERROR = "navigation_error"
    ALREADY_VISITED = "already_visited"


@dataclass(frozen=True, slots=True)
class FetchFailure:
    """Why a page produced no record. Never raised, always returned."""

    url: str
    kind: FailureKind
    detail: str = ""
    status: int | None = None


@dataclass(slots=True)
class RenderedPage:
    """What the rendering capability hands back for one navigation."""

    final_url: str
    status: int
    html: str


@dataclass(slots=True)
class CrawlStats:
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    batches: int = 0
