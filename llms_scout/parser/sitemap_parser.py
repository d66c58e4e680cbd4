# File: llms_scout/parser/sitemap_parser.py
"""llms_scout.parser.sitemap_parser: Модуль для парсинга sitemap.xml и извлечения URL."""

from __future__ import annotations

from typing import List

from lxml import etree


def parse_sitemap(xml_content: str | bytes) -> List[str]:
    """Разбирает XML content sitemap и возвращает список URL из тегов <loc>.

    Работает и для sitemap index: тогда возвращаются адреса вложенных sitemap.
    Битый XML разбирается восстанавливающим парсером; пустой документ даёт [].

    Пример:
    ```python
    from llms_scout.parser.sitemap_parser import parse_sitemap

    with open('sitemap.xml', encoding='utf-8') as f:
        content = f.read()
    urls = parse_sitemap(content)
    ```
    """
    data = xml_content.encode("utf-8") if isinstance(xml_content, str) else xml_content
    if not data.strip():
        return []
    parser = etree.XMLParser(ns_clean=True, recover=True)
    root = etree.fromstring(data, parser=parser)
    if root is None:
        return []
    locs = root.findall(".//{*}loc")
    return [loc.text.strip() for loc in locs if loc.text and loc.text.strip()]


def is_sitemap_index(xml_content: str | bytes) -> bool:
    data = xml_content.encode("utf-8") if isinstance(xml_content, str) else xml_content
    return b"<sitemapindex" in data[:2048]
