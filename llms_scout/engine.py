# File: llms_scout/engine.py
"""llms_scout.engine: Orchestration layer: обход сайта, генерация секций по партиям и сборка документа."""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

from llms_scout.config import CrawlMode, ScoutConfig
from llms_scout.consolidator import ConsolidatedDocument, ContentBatches, Consolidator
from llms_scout.crawler.crawler import BatchCrawler, CrawlResult
from llms_scout.crawler.fetcher import Renderer
from llms_scout.crawler.models import PageRecord
from llms_scout.errors import GenerationError
from llms_scout.events import CrawlEvent, EventLog
from llms_scout.generation.llm import GeminiGenerator, TextGenerator
from llms_scout.generation.sections import SectionGenerator
from llms_scout.logger import logger

__all__ = ["Engine", "DocumentSink", "GenerationResult", "start_scan", "OUTPUT_FILENAMES"]

OUTPUT_FILENAMES: Dict[CrawlMode, str] = {
    CrawlMode.SHORT: "llms.txt",
    CrawlMode.FULL: "llms-full.txt",
}


class DocumentSink(Protocol):
    """Получатель результата (хранилище, очередь задач). Методы могут быть корутинами."""

    def on_sections_ready(self, document: ConsolidatedDocument) -> Any: ...

    def on_failure(self, error: BaseException) -> Any: ...


@dataclass(slots=True)
class GenerationResult:
    """Документ плюс всё, что известно об обходе, который его породил."""

    document: ConsolidatedDocument
    crawl: CrawlResult
    mode: CrawlMode
    events: List[CrawlEvent] = field(default_factory=list)

    @property
    def text(self) -> str:
        return self.document.render()

    @property
    def filename(self) -> str:
        return OUTPUT_FILENAMES[self.mode]


async def _notify(callback: Callable[..., Any], *args: Any) -> None:
    outcome = callback(*args)
    if inspect.isawaitable(outcome):
        await outcome


class Engine:
    """Фасад для CLI и тестов: обход, генерация секций и консолидация."""

    def __init__(
        self,
        config: ScoutConfig,
        generator: Optional[TextGenerator] = None,
        renderer_factory: Optional[Callable[[ScoutConfig], Renderer]] = None,
    ) -> None:
        self.config = config
        self.generator = generator
        self.renderer_factory = renderer_factory

    def _text_generator(self) -> TextGenerator:
        if self.generator is None:
            self.generator = GeminiGenerator(self.config.generation)
        return self.generator

    async def generate(
        self,
        company_name: str,
        company_description: str,
        url: str,
        sink: Optional[DocumentSink] = None,
    ) -> GenerationResult:
        """
        Полный цикл для одного сайта. Фатальные ошибки (SeedFetchError,
        RenderContextError, GenerationError без единой секции) передаются в
        sink.on_failure и пробрасываются дальше.
        """
        try:
            result = await self._generate(company_name, company_description, url)
        except Exception as exc:
            logger.error("Generation for %s failed: %s", url, exc)
            if sink is not None:
                await _notify(sink.on_failure, exc)
            raise
        if sink is not None:
            await _notify(sink.on_sections_ready, result.document)
        return result

    async def _generate(self, company_name: str, company_description: str, url: str) -> GenerationResult:
        config = self.config
        budget = config.budget
        llm = self._text_generator()
        events = EventLog()
        comprehensive = config.mode is CrawlMode.FULL
        sections = SectionGenerator(
            llm,
            comprehensive=comprehensive,
            tier=budget.model_tier,
            link_limit=150 if comprehensive else 60,
            events=events,
        )
        batches = ContentBatches()

        async def on_batch(pages: List[PageRecord], batch_index: int) -> None:
            produced = await sections.generate(pages, company_name, company_description, url, batch_index)
            accepted = batches.extend(produced)
            logger.debug("Batch %d accepted: %s", batch_index, [k.value for k in accepted])

        logger.info("Starting %s generation for %s (%s)", config.mode.value, company_name, url)
        renderer = self.renderer_factory(config) if self.renderer_factory else None
        async with BatchCrawler(config, url, renderer=renderer, on_batch=on_batch, events=events) as crawler:
            crawl = await crawler.crawl()

        if batches.is_empty():
            raise GenerationError(f"No section content could be generated for {url}")
        consolidator = Consolidator(llm, tier=budget.model_tier, events=events)
        document = await consolidator.consolidate(batches, company_name, company_description, url)
        if not document.sections:
            raise GenerationError(f"All sections for {url} were empty after consolidation")
        return GenerationResult(document=document, crawl=crawl, mode=config.mode, events=list(events.events))

    def run(self, company_name: str, company_description: str, url: str, timeout: Optional[float] = None) -> GenerationResult:
        """Синхронная обёртка над generate с общим таймаутом."""
        coro = self.generate(company_name, company_description, url)
        try:
            return asyncio.run(asyncio.wait_for(coro, timeout=timeout) if timeout else coro)
        except asyncio.TimeoutError:
            logger.error("Generation did not finish within %s seconds", timeout)
            raise


async def start_scan(
    cfg: ScoutConfig,
    url: str,
    company_name: str,
    company_description: str,
    generator: Optional[TextGenerator] = None,
) -> GenerationResult:
    """Запускает Engine.generate для CLI; возвращает GenerationResult."""
    return await Engine(cfg, generator=generator).generate(company_name, company_description, url)
