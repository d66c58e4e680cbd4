# === FILE: llms_scout/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Sequence

from aiohttp import ClientSession, ClientTimeout

from llms_scout.config import ScoutConfig
from llms_scout.crawler.fetcher import PageFetcher, PlaywrightRenderer, Renderer
from llms_scout.crawler.frontier import Frontier
from llms_scout.crawler.models import (
    CrawlStats,
    FailureKind,
    FetchFailure,
    FrontierEntry,
    OutboundLink,
    PageRecord,
)
from llms_scout.crawler.probe import SubdomainProber, fetch_sitemap_urls
from llms_scout.crawler.scope import DomainScope
from llms_scout.errors import SeedFetchError, describe_seed_failure
from llms_scout.events import CrawlEvent, EventLog
from llms_scout.utils import hostname, normalize_url, remove_duplicates

__all__ = ("CrawlState", "CrawlResult", "BatchCrawler", "BatchCallback")

BatchCallback = Callable[[List[PageRecord], int], Awaitable[None]]


class CrawlState(str, Enum):
    SEEDING = "seeding"
    CRAWLING = "crawling"
    DRAINING = "draining"
    DONE = "done"


@dataclass(slots=True)
class CrawlResult:
    """Итог обхода: страницы, посещённые URL (в порядке выборки), события и статистика."""
    seed_url: str
    pages: List[PageRecord]
    visited: List[str]
    events: List[CrawlEvent]
    stats: CrawlStats
    state: CrawlState
    related_subdomains: List[str] = field(default_factory=list)


class BatchCrawler:
    """
    Пакетный обход сайта под бюджетом страниц и глубины.
    Партии идут строго последовательно, загрузки внутри партии идут параллельно.
    Frontier и множества visited/queued меняет только сам оркестратор, между партиями.
    """

    def __init__(
        self,
        config: ScoutConfig,
        seed_url: str,
        renderer: Optional[Renderer] = None,
        on_batch: Optional[BatchCallback] = None,
        events: Optional[EventLog] = None,
        session: Optional[ClientSession] = None,
    ) -> None:
        self.config = config
        self.budget = config.budget
        self.seed_url = normalize_url(seed_url)
        self.scope = DomainScope(self.seed_url)
        self.frontier = Frontier(self.scope, self.budget.max_depth)
        self.renderer: Renderer = renderer if renderer is not None else PlaywrightRenderer.from_config(config)
        self.fetcher = PageFetcher(self.renderer, self.scope, config)
        self.on_batch = on_batch
        self.events = events if events is not None else EventLog()
        self.state = CrawlState.SEEDING
        self.stats = CrawlStats()
        self.pages: List[PageRecord] = []
        self.visit_order: List[str] = []
        self.session = session
        self._own_session = False
        self.logger = logging.getLogger("LLMSScout.crawler")

    async def __aenter__(self) -> BatchCrawler:
        if self.session is None and (self.config.probe_subdomains or self.config.use_sitemap):
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.probe_timeout * 4),
                headers={"User-Agent": self.config.user_agent},
                raise_for_status=False,
            )
            self._own_session = True
        await self.renderer.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            await self.renderer.close()
        finally:
            if self._own_session and self.session and not self.session.closed:
                await self.session.close()

    @property
    def concurrency(self) -> int:
        return max(1, min(self.budget.concurrency, self.budget.batch_size))

    async def crawl(self) -> CrawlResult:
        self.logger.info(
            "Старт обхода: %s (max_pages=%d, max_depth=%d, batch=%d)",
            self.seed_url, self.budget.max_pages, self.budget.max_depth, self.budget.batch_size,
        )
        start = time.monotonic()
        seed_page = await self._seed()
        await self._discover()

        self.state = CrawlState.CRAWLING
        carry: List[PageRecord] = [seed_page]
        batch_index = 0
        while self.state is CrawlState.CRAWLING:
            remaining = self.budget.max_pages - len(self.frontier.visited)
            entries = self.frontier.next_batch(min(self.budget.batch_size, remaining)) if remaining > 0 else []
            if not entries:
                self.state = CrawlState.DRAINING
                break
            pages = await self._fetch_batch(entries, batch_index)
            self._register_links(pages)
            if len(self.frontier.visited) >= self.budget.max_pages or not len(self.frontier):
                # Бюджет исчерпан: новых загрузок нет, но текущая партия дорабатывается.
                self.state = CrawlState.DRAINING
            await self._emit(carry + pages, batch_index)
            carry = []
            batch_index += 1

        if carry:
            await self._emit(carry, batch_index)
        self.state = CrawlState.DONE

        duration = time.monotonic() - start
        self.logger.info(
            "Завершено: %d страниц (%d ошибок) за %.2f с, партий: %d",
            self.stats.succeeded, self.stats.failed, duration, self.stats.batches,
        )
        return CrawlResult(
            seed_url=self.seed_url,
            pages=list(self.pages),
            visited=list(self.visit_order),
            events=list(self.events.events),
            stats=self.stats,
            state=self.state,
            related_subdomains=sorted(self.scope.related_subdomains),
        )

    async def _seed(self) -> PageRecord:
        self.frontier.mark_visited(self.seed_url)
        self.visit_order.append(self.seed_url)
        self.stats.attempted += 1
        result = await self.fetcher.fetch(self.seed_url, 0)
        if isinstance(result, FetchFailure):
            self._record_failure(result, None)
            raise SeedFetchError(self.seed_url, describe_seed_failure(self.seed_url, result.detail))
        self.stats.succeeded += 1
        if result.url != self.seed_url:
            self.logger.info("Seed redirected to %s", result.url)
            self.scope.add_variant(result.url)
            self.frontier.mark_resolved(result.url)
        self.pages.append(result)
        queued = self.frontier.add_candidates(result.outbound_links, self.config.seed_link_priority, 0)
        self.logger.info("Seed page: %d links queued", queued)
        return result

    async def _discover(self) -> None:
        """Дополнительные кандидаты до обхода: поддомены документации и sitemap.xml."""
        if self.session is None:
            return
        if self.config.probe_subdomains and self.budget.max_depth > 0:
            prober = SubdomainProber(
                self.scope.root_domain,
                self.config.probe_prefixes,
                timeout=self.config.probe_timeout,
                concurrency=self.concurrency,
            )
            for found in await prober.run(self.session):
                host = hostname(found.url)
                if self.scope.confirm_subdomain(host):
                    self.frontier.add_candidate(
                        OutboundLink(found.url, host.split(".", 1)[0]),
                        self.config.seed_link_priority,
                        0,
                    )
        if self.config.use_sitemap and self.budget.max_depth > 0:
            urls = await fetch_sitemap_urls(
                self.session,
                self.seed_url,
                timeout=self.config.probe_timeout * 2,
                limit=self.budget.max_pages * 2,
            )
            added = self.frontier.add_candidates(
                (OutboundLink(u) for u in remove_duplicates([normalize_url(u) for u in urls])),
                self.config.discovered_link_priority,
                0,
            )
            self.logger.info("Sitemap: %d of %d URLs queued", added, len(urls))

    async def _fetch_batch(self, entries: Sequence[FrontierEntry], batch_index: int) -> List[PageRecord]:
        self.logger.info("Batch %d: fetching %d page(s)", batch_index, len(entries))
        self.visit_order.extend(e.url for e in entries)
        self.stats.attempted += len(entries)
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _one(entry: FrontierEntry) -> PageRecord | FetchFailure:
            async with semaphore:
                return await self.fetcher.fetch(entry.url, entry.depth, self.frontier.is_known)

        results = await asyncio.gather(*(_one(e) for e in entries), return_exceptions=True)
        # PageFetcher only lets RenderContextError escape; it ends the crawl.
        for outcome in results:
            if isinstance(outcome, BaseException):
                raise outcome

        pages: List[PageRecord] = []
        seen_final: set[str] = set()
        for entry, outcome in zip(entries, results):
            if isinstance(outcome, FetchFailure):
                self._record_failure(outcome, batch_index)
                continue
            if outcome.url in seen_final:
                self._record_failure(
                    FetchFailure(entry.url, FailureKind.ALREADY_VISITED, f"redirected to {outcome.url}"),
                    batch_index,
                )
                continue
            if outcome.url != entry.url:
                if not self.scope.is_in_scope(outcome.url):
                    self._record_failure(
                        FetchFailure(entry.url, FailureKind.NAVIGATION_ERROR, f"redirected off-site to {outcome.url}"),
                        batch_index,
                    )
                    continue
                self.frontier.mark_resolved(outcome.url)
            seen_final.add(outcome.url)
            self.scope.observe(outcome.url)
            pages.append(outcome)
        self.stats.succeeded += len(pages)
        self.pages.extend(pages)
        return pages

    def _register_links(self, pages: Sequence[PageRecord]) -> None:
        added = sum(
            self.frontier.add_candidates(page.outbound_links, self.config.discovered_link_priority, page.depth)
            for page in pages
        )
        self.frontier.rebuild()
        self.logger.debug("%d new link(s) queued, %d pending", added, len(self.frontier))

    async def _emit(self, pages: List[PageRecord], batch_index: int) -> None:
        """Передаёт содержательные страницы партии генератору секций."""
        useful: List[PageRecord] = []
        for page in pages:
            if page.depth > 0 and len(page.raw_content) < self.config.min_content_chars:
                self.events.record(
                    "thin_content",
                    url=page.url,
                    detail=f"{len(page.raw_content)} chars",
                    batch=batch_index,
                )
                continue
            useful.append(page)
        self.stats.batches += 1
        if self.on_batch is not None and useful:
            await self.on_batch(useful, batch_index)

    def _record_failure(self, failure: FetchFailure, batch_index: Optional[int]) -> None:
        self.stats.failed += 1
        self.events.record(failure.kind.value, url=failure.url, detail=failure.detail, batch=batch_index)
