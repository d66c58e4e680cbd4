# File: llms_scout/report/__init__.py
"""llms_scout.report: запись документа и JSON-отчёта, используемые CLI и тестами."""

from __future__ import annotations

from llms_scout.report.json_report import render_json, report_data
from llms_scout.report.text_report import render_text

__all__ = ["render_json", "render_text", "report_data"]
