# llms_scout/crawler/fetcher.py
"""
Fetcher module: loads one URL in a headless browser and extracts a PageRecord.

Loading uses a generous network-idle wait first and falls back to a
DOM-ready wait when that times out. Every per-page problem (HTTP status
>= 400, timeouts, navigation errors, detached pages) comes back as a
:class:`FetchFailure`; only a dead browser (:class:`RenderContextError`)
escapes.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from llms_scout.config import ScoutConfig
from llms_scout.crawler.models import FailureKind, FetchFailure, PageRecord, RenderedPage
from llms_scout.crawler.scope import DomainScope
from llms_scout.errors import RenderContextError
from llms_scout.parser.html_parser import parse_page
from llms_scout.utils import normalize_url

PRIMARY_WAIT = "networkidle"
FALLBACK_WAIT = "domcontentloaded"


def _first_line(exc: BaseException) -> str:
    lines = str(exc).strip().splitlines()
    return lines[0] if lines else type(exc).__name__


class RenderTimeout(Exception):
    """The page did not reach the requested load state in time."""


class Renderer(Protocol):
    """Browser-rendering capability consumed by :class:`PageFetcher`."""

    async def start(self) -> None: ...

    async def close(self) -> None: ...

    async def open(self, url: str, wait_until: str, timeout: float) -> RenderedPage: ...


class PlaywrightRenderer:
    """Headless Chromium via Playwright; one context per crawl, one page per fetch."""

    def __init__(self, user_agent: str, settle_delay: float = 1.0, headless: bool = True) -> None:
        self.user_agent = user_agent
        self.settle_delay = settle_delay
        self.headless = headless
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self.logger = logging.getLogger("LLMSScout.render")

    @classmethod
    def from_config(cls, config: ScoutConfig) -> PlaywrightRenderer:
        return cls(user_agent=config.user_agent, settle_delay=config.settle_delay)

    async def start(self) -> None:
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self.headless)
        self._context = await self._browser.new_context(user_agent=self.user_agent)
        self.logger.debug("Browser started")

    async def close(self) -> None:
        try:
            if self._context is not None:
                await self._context.close()
            if self._browser is not None:
                await self._browser.close()
        finally:
            if self._playwright is not None:
                await self._playwright.stop()
            self._context = self._browser = self._playwright = None
            self.logger.debug("Browser closed")

    async def open(self, url: str, wait_until: str, timeout: float) -> RenderedPage:
        if self._context is None or self._browser is None or not self._browser.is_connected():
            raise RenderContextError("Browser is not running")
        page = await self._context.new_page()
        try:
            response = await page.goto(url, wait_until=wait_until, timeout=timeout * 1000)
            if self.settle_delay:
                await page.wait_for_timeout(int(self.settle_delay * 1000))
            html = await page.content()
            status = response.status if response is not None else 200
            return RenderedPage(final_url=page.url, status=status, html=html)
        except PlaywrightTimeoutError as exc:
            raise RenderTimeout(str(exc)) from exc
        finally:
            try:
                await page.close()
            except PlaywrightError:
                pass


class PageFetcher:
    """Loads one URL via a :class:`Renderer` and turns it into a :class:`PageRecord`."""

    def __init__(self, renderer: Renderer, scope: DomainScope, config: ScoutConfig) -> None:
        self.renderer = renderer
        self.scope = scope
        self.config = config
        self.logger = logging.getLogger("LLMSScout.fetcher")

    async def fetch(
        self,
        url: str,
        depth: int,
        is_visited: Callable[[str], bool] = lambda _url: False,
    ) -> PageRecord | FetchFailure:
        """Fetch *url*; never raises except for :class:`RenderContextError`."""
        try:
            rendered = await self._load(url)
        except RenderTimeout as exc:
            return FetchFailure(url, FailureKind.TIMEOUT, _first_line(exc))
        except RenderContextError:
            raise
        except Exception as exc:  # pylint: disable=broad-except
            self.logger.debug("Navigation error for %s", url, exc_info=True)
            return FetchFailure(url, FailureKind.NAVIGATION_ERROR, _first_line(exc))

        if rendered.status >= 400:
            return FetchFailure(url, FailureKind.HTTP_ERROR, f"HTTP {rendered.status}", status=rendered.status)

        final_url = normalize_url(rendered.final_url or url)
        if final_url != normalize_url(url) and is_visited(final_url):
            return FetchFailure(url, FailureKind.ALREADY_VISITED, f"redirected to {final_url}")

        budget = self.config.budget
        try:
            return parse_page(
                rendered.html,
                final_url,
                depth,
                self.scope.is_in_scope,
                selectors=self.config.content_selectors,
                max_links=self.config.max_links_per_page,
                max_chars=budget.content_chars,
                min_chars=self.config.min_content_chars,
            )
        except Exception as exc:  # pylint: disable=broad-except
            self.logger.exception("Extraction failed for %s", final_url)
            return FetchFailure(url, FailureKind.NAVIGATION_ERROR, f"extraction failed: {exc}")

    async def _load(self, url: str) -> RenderedPage:
        try:
            return await self.renderer.open(url, PRIMARY_WAIT, self.config.navigation_timeout)
        except RenderTimeout:
            self.logger.info("Timeout waiting for network idle on %s, retrying with DOM ready", url)
        return await self.renderer.open(url, FALLBACK_WAIT, self.config.fallback_timeout)
