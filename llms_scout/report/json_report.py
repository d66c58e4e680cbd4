# llms_scout/report/json_report.py

"""
Генерация JSON-отчёта для проекта LLMSScout.

Сериализация GenerationResult (документ, посещённые страницы, события) в файл.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from llms_scout.engine import GenerationResult


def report_data(result: GenerationResult) -> Dict[str, Any]:
    """Словарь отчёта без полного текста страниц."""
    crawl = result.crawl
    return {
        "mode": result.mode.value,
        "output_file": result.filename,
        "seed_url": crawl.seed_url,
        "state": crawl.state.value,
        "document": result.text,
        "sections": [kind.value for kind in result.document.sections],
        "pages": [
            {
                "url": page.url,
                "title": page.title,
                "depth": page.depth,
                "is_documentation": page.is_documentation,
                "content_chars": len(page.raw_content),
                "links": len(page.outbound_links),
            }
            for page in crawl.pages
        ],
        "visited": crawl.visited,
        "related_subdomains": crawl.related_subdomains,
        "events": [event.as_dict() for event in result.events],
        "stats": {
            "attempted": crawl.stats.attempted,
            "succeeded": crawl.stats.succeeded,
            "failed": crawl.stats.failed,
            "batches": crawl.stats.batches,
        },
    }


def render_json(result: GenerationResult, output_path: Path | str) -> Path:
    """
    Сохраняет отчёт о генерации в формате JSON по указанному пути.

    :param result: GenerationResult, который вернул Engine.generate
    :param output_path: путь к JSON-файлу
    :return: Path сохранённого файла
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open("w", encoding="utf-8") as f:
        json.dump(report_data(result), f, ensure_ascii=False, indent=2)

    return output
