# === FILE: llms_scout/parser/html_parser.py ===
"""HTML extraction for rendered page snapshots.

Turns the DOM snapshot of one loaded page into a :class:`PageRecord`:

* title and meta description;
* heading text grouped by level (``h1``–``h3``);
* outbound links that stay on the site (same origin or in scope), with
  best-effort anchor text falling back to ``title``/``aria-label``;
* the main textual content, found by probing an ordered list of content
  container selectors (first non-trivial hit wins, the body is the last
  resort) after scripts, styles and hidden nodes are stripped;
* a documentation flag from hostname/path and title/description keywords.

The selector list is plain configuration, so site-specific containers can be
added without touching this module.
"""
from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from typing import Dict, List, Tuple
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup
from bs4.element import Tag
from soupsieve import SelectorSyntaxError

from llms_scout.config import DEFAULT_CONTENT_SELECTORS
from llms_scout.crawler.models import OutboundLink, PageRecord
from llms_scout.utils import is_content_url, is_documentation_url, normalize_url

__all__: Sequence[str] = ("parse_page", "extract_links", "extract_main_text", "looks_like_documentation")

HEADING_LEVELS = ("h1", "h2", "h3")
STRIP_TAGS = ("script", "style", "noscript", "template", "svg", "iframe")
_HIDDEN_STYLE_RE = re.compile(r"display\s*:\s*none|visibility\s*:\s*hidden", re.IGNORECASE)
_WS_RE = re.compile(r"\s+")
_DOC_KEYWORDS_RE = re.compile(
    r"\b(?:documentation|docs|api reference|developer guide|developer docs|getting started|"
    r"quickstart|tutorials?|sdk|reference guide|knowledge base)\b",
    re.IGNORECASE,
)
_SKIP_SCHEMES = ("mailto:", "javascript:", "tel:", "data:", "#")


def _clean(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def _strip_invisible(soup: BeautifulSoup) -> None:
    for element in soup(list(STRIP_TAGS)):
        element.decompose()
    hidden = [
        tag
        for tag in soup.find_all(True)
        if isinstance(tag, Tag)
        and (
            tag.has_attr("hidden")
            or tag.get("aria-hidden") == "true"
            or _HIDDEN_STYLE_RE.search(str(tag.get("style") or ""))
        )
    ]
    for tag in hidden:
        # a hidden ancestor may already have removed it
        if not tag.decomposed:
            tag.decompose()


def _link_text(tag: Tag) -> str:
    text = _clean(tag.get_text(" ", strip=True))
    if text:
        return text
    for attr in ("title", "aria-label"):
        value = tag.get(attr)
        if isinstance(value, str) and value.strip():
            return _clean(value)
    img = tag.find("img", alt=True)
    if isinstance(img, Tag):
        alt = img.get("alt")
        if isinstance(alt, str):
            return _clean(alt)
    return ""


def extract_links(
    soup: BeautifulSoup,
    page_url: str,
    accept: Callable[[str], bool],
    limit: int = 300,
) -> List[OutboundLink]:
    """Collect up to *limit* unique site links from *soup*.

    A link is kept when it has the same origin as *page_url* or *accept*
    (the domain scope check) says so. The first non-empty text seen for a URL wins.
    """
    origin = urlparse(page_url).netloc.lower()
    found: Dict[str, str] = {}
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str):
            continue
        raw = href_val.strip()
        if not raw or raw.lower().startswith(_SKIP_SCHEMES):
            continue
        absolute = urljoin(page_url, raw)
        parsed = urlparse(absolute)
        if parsed.scheme not in ("http", "https"):
            continue
        url = normalize_url(absolute)
        if not is_content_url(url):
            continue
        if parsed.netloc.lower() != origin and not accept(url):
            continue
        text = _link_text(tag)
        if url in found:
            if not found[url] and text:
                found[url] = text
            continue
        if len(found) >= limit:
            continue
        found[url] = text
    return [OutboundLink(url=url, text=text) for url, text in found.items()]


def extract_main_text(
    soup: BeautifulSoup,
    selectors: Sequence[str] = DEFAULT_CONTENT_SELECTORS,
    min_chars: int = 100,
) -> str:
    """Probe *selectors* in order; the first container with enough text wins."""
    for selector in selectors:
        try:
            node = soup.select_one(selector)
        except SelectorSyntaxError:
            continue
        if node is None:
            continue
        text = _clean(node.get_text(" ", strip=True))
        if len(text) >= min_chars:
            return text
    body = soup.body or soup
    return _clean(body.get_text(" ", strip=True))


def looks_like_documentation(url: str, title: str, description: str) -> bool:
    if is_documentation_url(url):
        return True
    return bool(_DOC_KEYWORDS_RE.search(f"{title} {description}"))


def _headings(soup: BeautifulSoup) -> Dict[str, Tuple[str, ...]]:
    grouped: Dict[str, Tuple[str, ...]] = {}
    for level in HEADING_LEVELS:
        texts = [_clean(h.get_text(" ", strip=True)) for h in soup.find_all(level)]
        texts = [t for t in texts if t]
        if texts:
            grouped[level] = tuple(texts)
    return grouped


def _meta_description(soup: BeautifulSoup) -> str:
    for attrs in ({"name": "description"}, {"property": "og:description"}):
        tag = soup.find("meta", attrs=attrs)
        if isinstance(tag, Tag):
            content = tag.get("content")
            if isinstance(content, str) and content.strip():
                return _clean(content)
    return ""


def parse_page(
    html: str,
    url: str,
    depth: int,
    accept: Callable[[str], bool] = lambda _url: False,
    *,
    selectors: Sequence[str] = DEFAULT_CONTENT_SELECTORS,
    max_links: int = 300,
    max_chars: int = 5000,
    min_chars: int = 100,
) -> PageRecord:
    """Extract a :class:`PageRecord` from the rendered *html* of *url*."""
    soup = BeautifulSoup(html, "html.parser")

    title_tag = soup.find("title")
    title = _clean(title_tag.get_text(" ", strip=True)) if title_tag else ""
    description = _meta_description(soup)

    # Links are collected before hidden nodes (collapsed menus) are stripped.
    links = extract_links(soup, url, accept, limit=max_links)
    _strip_invisible(soup)
    headings = _headings(soup)
    content = extract_main_text(soup, selectors, min_chars=min_chars)[:max_chars]

    return PageRecord(
        url=url,
        title=title,
        meta_description=description,
        headings=headings,
        raw_content=content,
        outbound_links=tuple(links),
        is_documentation=looks_like_documentation(url, title, description),
        depth=depth,
    )
