# llms_scout/crawler/frontier.py
"""
Crawl frontier: discovered-but-unvisited links ordered by priority.

The schedule is re-derived from all pending entries whenever new links
arrive, so a valuable deep link can overtake a shallow one still queued.
"""
from __future__ import annotations

import re
from typing import Dict, Iterable, List, Sequence, Set, Tuple
from urllib.parse import urlparse

from llms_scout.crawler.models import FrontierEntry, OutboundLink
from llms_scout.crawler.scope import DomainScope
from llms_scout.utils import is_content_url, normalize_url

# (bonus, pattern) from highest to lowest; every matching group adds its bonus once.
KEYWORD_BONUSES: Sequence[Tuple[float, re.Pattern[str]]] = (
    (5.0, re.compile(r"docs?\b|documentation|guide|help|tutorial|manual")),
    (4.0, re.compile(r"\bapi\b|developer|\bsdk\b")),
    (3.0, re.compile(r"product|feature|changelog|release-notes|pricing")),
    (2.0, re.compile(r"about|company|team")),
    (1.0, re.compile(r"blog|resource|news")),
    (1.0, re.compile(r"privacy|terms|policy|policies|legal|cookie")),
)


def keyword_bonus(url: str, anchor_text: str = "") -> float:
    parsed = urlparse(url)
    labels = (parsed.hostname or "").split(".")
    subdomain = labels[0] if len(labels) > 2 else ""
    haystack = f"{subdomain} {parsed.path} {parsed.query} {anchor_text}".lower()
    return sum(bonus for bonus, pattern in KEYWORD_BONUSES if pattern.search(haystack))


def priority_score(
    url: str,
    anchor_text: str,
    base_priority: float,
    source_depth: int,
    max_depth: int,
) -> float:
    """``base × (max_depth − source_depth)`` plus keyword bonuses."""
    return base_priority * (max_depth - source_depth) + keyword_bonus(url, anchor_text)


class Frontier:
    """Priority frontier with monotonically growing ``visited``/``queued`` sets.

    Owned by the orchestrator; it is only mutated between batches.
    """

    def __init__(self, scope: DomainScope, max_depth: int) -> None:
        self.scope = scope
        self.max_depth = max_depth
        self.visited: Set[str] = set()
        self.queued: Set[str] = set()
        self._resolved: Set[str] = set()
        self._pending: Dict[str, FrontierEntry] = {}
        self._order: Dict[str, int] = {}
        self._schedule: List[FrontierEntry] = []
        self._dirty = False
        self._counter = 0

    def __len__(self) -> int:
        return len(self._pending)

    def add_candidate(
        self,
        link: OutboundLink,
        base_priority: float,
        source_depth: int,
        boost: float = 0.0,
    ) -> bool:
        """Queue *link* found on a page at *source_depth*. Returns True if queued."""
        depth = source_depth + 1
        if depth > self.max_depth:
            return False
        url = normalize_url(link.url)
        if url in self.visited or url in self.queued or url in self._resolved:
            return False
        if not is_content_url(url) or not self.scope.is_in_scope(url):
            return False
        self.scope.observe(url)
        score = priority_score(url, link.text, base_priority, source_depth, self.max_depth) + boost
        self._pending[url] = FrontierEntry(url=url, anchor_text=link.text, priority_score=score, depth=depth)
        self._order[url] = self._counter
        self._counter += 1
        self.queued.add(url)
        self._dirty = True
        return True

    def add_candidates(
        self,
        links: Iterable[OutboundLink],
        base_priority: float,
        source_depth: int,
    ) -> int:
        return sum(1 for link in links if self.add_candidate(link, base_priority, source_depth))

    def mark_visited(self, url: str) -> None:
        url = normalize_url(url)
        self.visited.add(url)
        self.queued.add(url)
        if self._pending.pop(url, None) is not None:
            self._dirty = True

    def mark_resolved(self, url: str) -> None:
        """Remember a post-redirect URL so it is never fetched again."""
        url = normalize_url(url)
        self._resolved.add(url)
        if url not in self.visited and self._pending.pop(url, None) is not None:
            self._dirty = True

    def is_known(self, url: str) -> bool:
        url = normalize_url(url)
        return url in self.visited or url in self._resolved

    def rebuild(self) -> List[FrontierEntry]:
        """Re-derive the schedule: score descending, discovery order on ties."""
        self._schedule = sorted(
            self._pending.values(),
            key=lambda e: (-e.priority_score, self._order[e.url]),
        )
        self._dirty = False
        return list(self._schedule)

    def next_batch(self, n: int) -> List[FrontierEntry]:
        """Pop up to *n* best entries and move them to ``visited``."""
        if n <= 0:
            return []
        if self._dirty:
            self.rebuild()
        batch: List[FrontierEntry] = []
        remaining: List[FrontierEntry] = []
        for entry in self._schedule:
            if entry.url in self.visited or entry.url in self._resolved or entry.url not in self._pending:
                continue
            if len(batch) < n:
                batch.append(entry)
            else:
                remaining.append(entry)
        for entry in batch:
            del self._pending[entry.url]
            self.visited.add(entry.url)
        self._schedule = remaining
        return batch
