# File: llms_scout/consolidator.py
"""llms_scout.consolidator: сборка частичных секций всех партий в итоговый документ."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urlparse

from llms_scout.config import ModelTier
from llms_scout.events import EventLog
from llms_scout.formatter import normalize
from llms_scout.generation.llm import TextGenerator
from llms_scout.generation.sections import SectionKind, ensure_heading, prompt_env
from llms_scout.parser.link_parser import LinkEntry, format_link_entries, parse_link_entries

logger = logging.getLogger("LLMSScout.consolidator")

__all__ = [
    "ContentBatches",
    "ConsolidatedDocument",
    "Consolidator",
    "LINK_CATEGORIES",
    "categorize_link",
    "has_section_content",
    "merge_links",
]

# Ответы модели вида «данных нет»: такие секции в документ не попадают.
# Шаблон должен покрыть всё тело целиком, хвост допускается только вида
# «in the provided website data».
_SOURCE = (
    r"(?:\s+(?:in|on|from|within)\s+(?:the\s+)?(?:provided\s+|supplied\s+|given\s+|available\s+)?"
    r"(?:website\s+|site\s+|page\s+)?(?:data|content|pages?|information|text|website|site))?"
)
_INFO = r"(?:specific\s+|relevant\s+|additional\s+|further\s+)?(?:information|details|data|content)"
PLACEHOLDER_PATTERNS: Sequence[re.Pattern[str]] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"no\s[\w\s,/'-]{0,60}?\b(?:was|were|is|are|has been|have been)\s+"
        r"(?:provided|available|found|mentioned|included|listed|identified)" + _SOURCE + r"\s*\.?",
        r"there\s+(?:is|are|was|were)\s+no\s+" + _INFO
        + r"(?:\s+(?:about|on|regarding)\s+[\w' -]{1,40}?)?" + _SOURCE + r"\s*\.?",
        r"no\s+" + _INFO + r"(?:\s+(?:about|on|regarding)\s+[\w'-]+(?:\s+[\w'-]+)?)?"
        r"(?:\s+(?:is|was|are|were|has been))?\s+(?:available|provided|found)" + _SOURCE + r"\s*\.?",
        r"(?:the\s+)?(?:(?:provided|supplied|given)\s+(?:website\s+)?|website\s+)(?:data|content|pages)\s+"
        r"(?:does not|doesn't|did not|do not|don't)\s+(?:contain|include|mention|provide)\b.*",
        r"(?:none|n/a|not available|not applicable|unknown)\.?",
    )
)
_PLACEHOLDER_MAX_CHARS = 300


def has_section_content(text: str) -> bool:
    """True, если после строки-заголовка остаётся что-то кроме заглушки."""
    lines = text.strip().splitlines()
    if lines and lines[0].lstrip().startswith("#"):
        lines = lines[1:]
    body = " ".join(line.strip() for line in lines if line.strip())
    if not body:
        return False
    if len(body) > _PLACEHOLDER_MAX_CHARS:
        return True
    body = body.lstrip("-* ").strip()
    return not any(p.fullmatch(body) for p in PLACEHOLDER_PATTERNS)


@dataclass(slots=True)
class ContentBatches:
    """Кандидаты каждой секции в порядке партий; пустые и заглушки не добавляются."""

    mission: List[str] = field(default_factory=list)
    products: List[str] = field(default_factory=list)
    links: List[str] = field(default_factory=list)
    policies: List[str] = field(default_factory=list)

    def versions(self, kind: SectionKind) -> List[str]:
        return getattr(self, kind.value)

    def append(self, kind: SectionKind, text: str) -> bool:
        if not text or not has_section_content(text):
            return False
        self.versions(kind).append(text.strip())
        return True

    def extend(self, sections: Dict[SectionKind, str]) -> List[SectionKind]:
        """Добавляет результат одной партии; возвращает секции, которые приняты."""
        return [kind for kind, text in sections.items() if self.append(kind, text)]

    def is_empty(self) -> bool:
        return not any(self.versions(kind) for kind in SectionKind)


# (category, pattern); первое совпадение побеждает.
LINK_CATEGORIES: Sequence[Tuple[str, re.Pattern[str]]] = (
    ("Documentation", re.compile(r"docs?\b|documentation|guide|tutorial|manual|getting[-_ ]started|quickstart|knowledge")),
    ("Technical", re.compile(r"\bapi\b|developer|\bsdk\b|reference|integration|webhook|github|changelog|status")),
    ("Products", re.compile(r"product|feature|pricing|plans?\b|solution|platform|download")),
    ("Support", re.compile(r"support|help|faq|contact|ticket")),
    ("Community", re.compile(r"community|forum|discord|slack|discuss|meetup|events?\b")),
    ("Company", re.compile(r"about|company|team|careers?|jobs|press|partners?|investors?|privacy|terms|legal|security")),
    ("Resources", re.compile(r"blog|resource|news|case[-_ ]stud|customers?|whitepaper|webinar|ebook|podcast")),
)
GENERAL_CATEGORY = "General"


def categorize_link(entry: LinkEntry) -> str:
    parsed = urlparse(entry.url)
    labels = (parsed.hostname or "").split(".")
    subdomain = labels[0] if len(labels) > 2 else ""
    haystack = f"{subdomain} {parsed.path} {entry.text}".lower()
    for name, pattern in LINK_CATEGORIES:
        if pattern.search(haystack):
            return name
    return GENERAL_CATEGORY


def merge_links(texts: Iterable[str]) -> List[LinkEntry]:
    """Разбирает записи всех партий, одна запись на URL, порядок первого появления."""
    merged: Dict[str, LinkEntry] = {}
    for text in texts:
        for entry in parse_link_entries(text):
            if entry.url in merged:
                merged[entry.url].merge(entry)
            else:
                merged[entry.url] = entry
    return list(merged.values())


def render_link_section(entries: Sequence[LinkEntry]) -> str:
    grouped: Dict[str, List[LinkEntry]] = {}
    for entry in entries:
        grouped.setdefault(categorize_link(entry), []).append(entry)
    order = [name for name, _ in LINK_CATEGORIES] + [GENERAL_CATEGORY]
    parts = [SectionKind.LINKS.heading]
    for name in order:
        if grouped.get(name):
            parts.append(f"### {name}\n{format_link_entries(grouped[name])}")
    return "\n\n".join(parts)


@dataclass(slots=True)
class ConsolidatedDocument:
    """Итоговый документ: заголовок, описание и непустые секции в каноническом порядке."""

    title: str
    description: str = ""
    sections: Dict[SectionKind, str] = field(default_factory=dict)

    def render(self) -> str:
        parts = [f"# {self.title}"]
        if self.description:
            parts.append(f"> {self.description}")
        parts.extend(self.sections[kind] for kind in SectionKind if kind in self.sections)
        return "\n\n".join(parts) + "\n"

    def __str__(self) -> str:
        return self.render()


class Consolidator:
    """Сводит ContentBatches в ConsolidatedDocument."""

    def __init__(
        self,
        llm: TextGenerator,
        *,
        tier: ModelTier = ModelTier.FAST,
        events: Optional[EventLog] = None,
    ) -> None:
        self.llm = llm
        self.tier = tier
        self.events = events if events is not None else EventLog()

    async def consolidate(
        self,
        batches: ContentBatches,
        company_name: str,
        company_description: str = "",
        website_url: str = "",
    ) -> ConsolidatedDocument:
        document = ConsolidatedDocument(title=company_name.strip(), description=company_description.strip())
        context = {
            "company_name": company_name,
            "company_description": company_description,
            "website_url": website_url,
        }
        for kind in SectionKind:
            versions = batches.versions(kind)
            if not versions:
                continue
            if len(versions) == 1:
                text = versions[0]
            elif kind is SectionKind.LINKS:
                text = render_link_section(merge_links(versions))
            else:
                text = await self._merge_narrative(kind, versions, context)
            if has_section_content(text):
                document.sections[kind] = text
            else:
                logger.info("Section %s dropped: no real content after merge", kind.value)
        logger.info(
            "Consolidated %d section(s): %s",
            len(document.sections),
            ", ".join(k.value for k in document.sections) or "none",
        )
        return document

    async def _merge_narrative(self, kind: SectionKind, versions: List[str], context: Dict[str, str]) -> str:
        prompt = prompt_env.get_template("consolidate.j2").render(
            heading=kind.heading,
            versions=versions,
            **context,
        )
        try:
            merged = ensure_heading(kind, normalize(await self.llm.complete(prompt, tier=self.tier)))
        except Exception as exc:  # pylint: disable=broad-except
            self.events.record("consolidation_fallback", detail=f"{kind.value}: {exc}")
            return self.longest(versions)
        if not has_section_content(merged):
            self.events.record("consolidation_fallback", detail=f"{kind.value}: merge returned no content")
            return self.longest(versions)
        return merged

    @staticmethod
    def longest(versions: Sequence[str]) -> str:
        """Самая длинная версия; при равенстве добавленная раньше."""
        return max(versions, key=len)
