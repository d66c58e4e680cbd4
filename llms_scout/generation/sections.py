"""
Section generation: one batch of pages → candidate texts for the four sections.

Each :class:`SectionKind` has its own strategy object that decides which of
the batch's pages support it (no pages → no model call), renders its prompt
from a Jinja2 template and post-processes the model output. The requested
sections of one batch are generated concurrently.
"""
from __future__ import annotations

import asyncio
import logging
import re
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Sequence, Set, Tuple

from jinja2 import Environment, PackageLoader, StrictUndefined

from llms_scout.config import ModelTier
from llms_scout.crawler.models import PageRecord
from llms_scout.events import EventLog
from llms_scout.formatter import normalize
from llms_scout.generation.llm import TextGenerator
from llms_scout.parser.link_parser import format_link_entry, parse_link_entries
from llms_scout.utils import is_homepage_url, normalize_url

logger = logging.getLogger("LLMSScout.sections")


class SectionKind(str, Enum):
    MISSION = "mission"
    PRODUCTS = "products"
    LINKS = "links"
    POLICIES = "policies"

    @property
    def heading(self) -> str:
        return SECTION_HEADINGS[self]


SECTION_HEADINGS: Dict[SectionKind, str] = {
    SectionKind.MISSION: "## Mission",
    SectionKind.PRODUCTS: "## Products and Services",
    SectionKind.LINKS: "## Important Links",
    SectionKind.POLICIES: "## Policies",
}

POLICY_RE = re.compile(r"privacy|terms|polic(?:y|ies)|legal|cookie|gdpr|compliance", re.IGNORECASE)
PRODUCT_RE = re.compile(r"product|feature|pricing|solution", re.IGNORECASE)

prompt_env = Environment(
    loader=PackageLoader("llms_scout", "templates"),
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
    undefined=StrictUndefined,
)


def _signal_text(page: PageRecord) -> str:
    return f"{page.title} {page.url}"


def is_policy_page(page: PageRecord) -> bool:
    return bool(POLICY_RE.search(_signal_text(page)))


def is_product_page(page: PageRecord) -> bool:
    return not page.is_documentation and bool(PRODUCT_RE.search(_signal_text(page)))


def ensure_heading(kind: SectionKind, text: str) -> str:
    """Make the section start with its canonical heading line."""
    text = text.strip()
    if not text:
        return ""
    first, _, rest = text.partition("\n")
    if first.lstrip().startswith("#"):
        return f"{kind.heading}\n{rest}".rstrip() if rest.strip() else kind.heading
    return f"{kind.heading}\n\n{text}"


URL_HINT_RE = re.compile(r"\]\(|https?://|www\.", re.IGNORECASE)
_INLINE_LINK_RE = re.compile(r"\[([^\]\n]*)\]\([^)\n]*\)")
_BARE_URL_RE = re.compile(r"https?://[^\s)\]>]+", re.IGNORECASE)
_BLANK_RUN_RE = re.compile(r"\n{3,}")


def lookup_observed(observed: Dict[str, str], url: str) -> Optional[str]:
    try:
        return observed.get(normalize_url(url))
    except ValueError:  # malformed netloc, e.g. an unclosed "["
        return None


def scrub_links(text: str, observed: Dict[str, str]) -> str:
    """Reduce inline links to their text; bare URLs survive only if observed.

    *observed* maps normalized URLs to their verbatim form.
    """
    if not text:
        return ""
    text = _INLINE_LINK_RE.sub(r"\1", text)
    text = _BARE_URL_RE.sub(lambda m: lookup_observed(observed, m.group(0)) or "", text)
    return " ".join(text.split()).strip(" :;,-")


def drop_empty_subheadings(lines: Sequence[str]) -> List[str]:
    """Remove ``###`` lines left without entries below them."""
    kept: List[str] = []
    for i, line in enumerate(lines):
        if line.lstrip().startswith("###"):
            following = next((nxt for nxt in lines[i + 1:] if nxt.strip()), "")
            if not following or following.lstrip().startswith("#"):
                continue
        kept.append(line)
    return kept


class SectionStrategy:
    """Base strategy: page selection, prompt rendering and output clean-up."""

    kind: ClassVar[SectionKind]
    template: ClassVar[str]
    with_links: ClassVar[bool] = False

    def select(self, pages: Sequence[PageRecord], batch_index: int) -> List[PageRecord]:
        return list(pages)

    def render(self, pages: Sequence[PageRecord], **context) -> str:
        return prompt_env.get_template(self.template).render(
            pages=pages,
            heading=self.kind.heading,
            with_links=self.with_links,
            **context,
        )

    def postprocess(
        self,
        text: str,
        pages: Sequence[PageRecord],
        events: EventLog,
        batch_index: int,
    ) -> str:
        return ensure_heading(self.kind, normalize(text))


class MissionSection(SectionStrategy):
    kind = SectionKind.MISSION
    template = "mission.j2"

    def select(self, pages: Sequence[PageRecord], batch_index: int) -> List[PageRecord]:
        homepages = [p for p in pages if is_homepage_url(p.url)]
        if batch_index != 0 and not homepages:
            return []
        return homepages + [p for p in pages if p not in homepages]


class ProductsSection(SectionStrategy):
    kind = SectionKind.PRODUCTS
    template = "products.j2"

    def select(self, pages: Sequence[PageRecord], batch_index: int) -> List[PageRecord]:
        return [p for p in pages if is_product_page(p)]


class PoliciesSection(SectionStrategy):
    kind = SectionKind.POLICIES
    template = "policies.j2"

    def select(self, pages: Sequence[PageRecord], batch_index: int) -> List[PageRecord]:
        return [p for p in pages if is_policy_page(p)]


class LinksSection(SectionStrategy):
    kind = SectionKind.LINKS
    template = "links.j2"
    with_links = True

    @staticmethod
    def observed_urls(pages: Sequence[PageRecord]) -> Set[str]:
        urls = {p.url for p in pages}
        urls.update(link.url for p in pages for link in p.outbound_links)
        return urls

    def postprocess(
        self,
        text: str,
        pages: Sequence[PageRecord],
        events: EventLog,
        batch_index: int,
    ) -> str:
        """Keep headings and entries whose URL was observed verbatim, each URL once.

        Every other line is dropped: prose, bare or relative URLs can't be
        checked against the page data.
        """
        text = normalize(text)
        allowed = self.observed_urls(pages)
        normalized_allowed = {normalize_url(u): u for u in allowed}
        seen: Set[str] = set()
        lines: List[str] = []
        for line in text.splitlines():
            if not line.strip() or (line.lstrip().startswith("#") and not URL_HINT_RE.search(line)):
                lines.append(line)
                continue
            entries = parse_link_entries(line)
            if not entries:
                if URL_HINT_RE.search(line):
                    events.record("link_dropped", detail=f"unverifiable line: {line.strip()}", batch=batch_index)
                continue
            entry = entries[0]
            if entry.url not in allowed:
                # same page written slightly differently (trailing slash, case of host)
                canonical = lookup_observed(normalized_allowed, entry.url)
                if canonical is None:
                    events.record("link_dropped", url=entry.url, detail="not present in page data", batch=batch_index)
                    continue
                entry.url = canonical
            entry.text = scrub_links(entry.text, normalized_allowed)
            entry.description = scrub_links(entry.description, normalized_allowed)
            if not entry.text:
                events.record("link_dropped", url=entry.url, detail="no anchor text", batch=batch_index)
                continue
            if entry.url in seen:
                events.record("link_dropped", url=entry.url, detail="duplicate entry", batch=batch_index)
                continue
            seen.add(entry.url)
            lines.append(format_link_entry(entry))
        if not seen:
            return ""
        body = _BLANK_RUN_RE.sub("\n\n", "\n".join(drop_empty_subheadings(lines)))
        return ensure_heading(self.kind, body)


STRATEGIES: Dict[SectionKind, SectionStrategy] = {
    SectionKind.MISSION: MissionSection(),
    SectionKind.PRODUCTS: ProductsSection(),
    SectionKind.LINKS: LinksSection(),
    SectionKind.POLICIES: PoliciesSection(),
}


class SectionGenerator:
    """Turns one batch's pages into ``{kind: text}`` (texts may be empty)."""

    def __init__(
        self,
        llm: TextGenerator,
        *,
        comprehensive: bool = False,
        tier: ModelTier = ModelTier.FAST,
        excerpt_chars: Optional[int] = None,
        link_limit: int = 60,
        events: Optional[EventLog] = None,
    ) -> None:
        self.llm = llm
        self.comprehensive = comprehensive
        self.tier = tier
        self.excerpt_chars = excerpt_chars or (1000 if comprehensive else 400)
        self.link_limit = link_limit
        self.events = events if events is not None else EventLog()

    def plan(self, pages: Sequence[PageRecord], batch_index: int) -> List[Tuple[SectionStrategy, List[PageRecord]]]:
        """Sections worth a model call for this batch, with their supporting pages."""
        planned = []
        for kind, strategy in STRATEGIES.items():
            selected = strategy.select(pages, batch_index)
            if selected:
                planned.append((strategy, selected))
            else:
                self.events.record(
                    "section_skipped",
                    detail=f"{kind.value}: no qualifying pages",
                    batch=batch_index,
                )
        return planned

    async def generate(
        self,
        pages: Sequence[PageRecord],
        company_name: str,
        company_description: str,
        website_url: str = "",
        batch_index: int = 0,
    ) -> Dict[SectionKind, str]:
        results: Dict[SectionKind, str] = {kind: "" for kind in SectionKind}
        if not pages:
            return results
        context = {
            "company_name": company_name,
            "company_description": company_description,
            "website_url": website_url or pages[0].url,
            "comprehensive": self.comprehensive,
            "excerpt_chars": self.excerpt_chars,
            "link_limit": self.link_limit,
        }
        planned = self.plan(pages, batch_index)
        texts = await asyncio.gather(
            *(self._run(strategy, selected, context, batch_index) for strategy, selected in planned)
        )
        for (strategy, _selected), text in zip(planned, texts):
            results[strategy.kind] = text
        logger.info(
            "Batch %d: generated %s",
            batch_index,
            ", ".join(k.value for k, v in results.items() if v) or "nothing",
        )
        return results

    async def _run(
        self,
        strategy: SectionStrategy,
        pages: List[PageRecord],
        context: Dict[str, object],
        batch_index: int,
    ) -> str:
        prompt = strategy.render(pages, **context)
        try:
            raw = await self.llm.complete(prompt, tier=self.tier)
        except Exception as exc:  # pylint: disable=broad-except
            self.events.record("section_failed", detail=f"{strategy.kind.value}: {exc}", batch=batch_index)
            return ""
        return strategy.postprocess(raw, pages, self.events, batch_index)
