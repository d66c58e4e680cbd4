# llms_scout/report/text_report.py

"""Запись итогового документа (llms.txt / llms-full.txt) на диск."""
from __future__ import annotations

from pathlib import Path
from typing import Union

from llms_scout.consolidator import ConsolidatedDocument


def render_text(document: Union[ConsolidatedDocument, str], output_path: Path | str) -> Path:
    """Пишет документ в UTF-8; каталог создаётся при необходимости."""
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    text = document.render() if isinstance(document, ConsolidatedDocument) else document
    output.write_text(text, encoding="utf-8")
    return output
