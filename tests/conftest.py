# File: tests/conftest.py
from __future__ import annotations

import asyncio
import re
from collections.abc import Iterable
from typing import Dict, List, Optional, Sequence, Set, Tuple

import pytest

from llms_scout.config import CrawlBudget, ModelTier, ScoutConfig
from llms_scout.crawler.fetcher import RenderTimeout
from llms_scout.crawler.models import RenderedPage
from llms_scout.errors import GenerationError, RenderContextError

FILLER = (
    "Acme builds reusable rockets and the software that flies them. "
    "Our platform helps teams launch payloads quickly and safely. "
)


def page_html(
    title: str,
    text: str = FILLER,
    links: Sequence[Tuple[str, str]] = (),
    description: str = "",
    headings: Sequence[str] = (),
) -> str:
    """Minimal rendered page: title, optional meta description, <main> text and links."""
    meta = f'<meta name="description" content="{description}">' if description else ""
    anchors = "".join(f'<a href="{href}">{label}</a>' for href, label in links)
    hs = "".join(f"<h2>{h}</h2>" for h in headings)
    return (
        f"<html><head><title>{title}</title>{meta}</head>"
        f"<body><nav>{anchors}</nav><main><h1>{title}</h1>{hs}<p>{text}</p></main></body></html>"
    )


class FakeRenderer:
    """In-memory rendering capability: pages by URL, redirects, statuses, timeouts."""

    def __init__(
        self,
        pages: Dict[str, str],
        redirects: Optional[Dict[str, str]] = None,
        statuses: Optional[Dict[str, int]] = None,
        slow: Iterable[str] = (),
        hang: Iterable[str] = (),
        errors: Optional[Dict[str, Exception]] = None,
        delay: float = 0.0,
    ) -> None:
        self.pages = pages
        self.redirects = redirects or {}
        self.statuses = statuses or {}
        self.slow: Set[str] = set(slow)  # time out on networkidle only
        self.hang: Set[str] = set(hang)  # time out on every wait strategy
        self.errors = errors or {}
        self.delay = delay
        self.calls: List[Tuple[str, str]] = []
        self.started = False
        self.closed = False
        self.dead = False
        self.in_flight = 0
        self.max_in_flight = 0

    async def start(self) -> None:
        self.started = True

    async def close(self) -> None:
        self.closed = True

    async def open(self, url: str, wait_until: str, timeout: float) -> RenderedPage:
        if self.dead:
            raise RenderContextError("Browser has been closed")
        self.calls.append((url, wait_until))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if url in self.errors:
                raise self.errors[url]
            if url in self.hang or (url in self.slow and wait_until == "networkidle"):
                raise RenderTimeout(f"Timeout {timeout}s exceeded waiting for {wait_until}")
            final = self.redirects.get(url, url)
            status = self.statuses.get(final, 200 if final in self.pages else 404)
            return RenderedPage(final_url=final, status=status, html=self.pages.get(final, ""))
        finally:
            self.in_flight -= 1

    def opened(self) -> List[str]:
        return [url for url, wait in self.calls if wait == "networkidle"]


_HEADING_RE = re.compile(r"Start with the exact line: (## [^\n]+)")
_COMPANY_RE = re.compile(r"Company Name: ([^\n]*)")
_PAGE_RE = re.compile(r"^- Title: (?P<title>[^\n]*)\n  URL: (?P<url>\S+)", re.MULTILINE)


class ScriptedGenerator:
    """Text-generation stand-in that answers from the page data embedded in the prompt."""

    def __init__(self, fail: Iterable[str] = (), replies: Optional[Dict[str, str]] = None) -> None:
        self.fail = set(fail)
        self.replies = replies or {}
        self.prompts: List[str] = []
        self.tiers: List[ModelTier] = []

    @staticmethod
    def section_of(prompt: str) -> str:
        if "partial versions" in prompt:
            return "consolidate"
        heading = _HEADING_RE.search(prompt)
        return {
            "## Mission": "mission",
            "## Products and Services": "products",
            "## Important Links": "links",
            "## Policies": "policies",
        }.get(heading.group(1) if heading else "", "unknown")

    async def complete(self, prompt: str, *, tier: ModelTier = ModelTier.FAST) -> str:
        self.prompts.append(prompt)
        self.tiers.append(tier)
        section = self.section_of(prompt)
        if section in self.fail:
            raise GenerationError(f"scripted failure for {section}")
        if section in self.replies:
            return self.replies[section]
        heading = _HEADING_RE.search(prompt).group(1)
        pages = [(m.group("title"), m.group("url")) for m in _PAGE_RE.finditer(prompt)]
        if section == "mission":
            company = _COMPANY_RE.search(prompt).group(1)
            return f"{heading}\n\n**{company}** builds reusable rockets."
        if section == "consolidate":
            return f"{heading}\n\nMerged from {prompt.count('--- Version')} versions."
        entries = "\n".join(f"* [{title}]({url}): {section} page" for title, url in pages)
        return f"```markdown\n{heading}\n\n{entries}\n```"

    def calls_for(self, section: str) -> List[str]:
        return [p for p in self.prompts if self.section_of(p) == section]


@pytest.fixture()
def scout_config() -> ScoutConfig:
    """Small budget, no network side channels."""
    return ScoutConfig(
        short=CrawlBudget(max_pages=5, max_depth=2, batch_size=2, concurrency=2),
        settle_delay=0,
        probe_subdomains=False,
        min_content_chars=20,
    )


@pytest.fixture()
def acme_site() -> Dict[str, str]:
    """acme.example: index → /about, /docs, /privacy; /docs → /docs/start."""
    return {
        "https://acme.example/": page_html(
            "Acme",
            links=[("/about", "About us"), ("/docs", "Docs"), ("/privacy", "Privacy Policy")],
            description="Rockets for everyone",
        ),
        "https://acme.example/about": page_html("About Acme", links=[("/", "Home")]),
        "https://acme.example/docs": page_html(
            "Acme Documentation", links=[("/docs/start", "Getting started")]
        ),
        "https://acme.example/docs/start": page_html("Getting started"),
        "https://acme.example/privacy": page_html(
            "Privacy Policy", "We never sell your data. " * 5
        ),
    }


@pytest.fixture()
def generator() -> ScriptedGenerator:
    return ScriptedGenerator()


@pytest.fixture()
def scripted():
    """Factory for generators with scripted failures or canned replies."""
    return ScriptedGenerator


@pytest.fixture()
def fake_renderer():
    """Factory for in-memory renderers."""
    return FakeRenderer


@pytest.fixture()
def html():
    """Page markup builder."""
    return page_html
