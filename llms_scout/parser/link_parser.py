# File: llms_scout/parser/link_parser.py
"""Parsing of ``- [text](url): description`` entries out of generated markdown.

Malformed lines are simply not returned; nothing is guessed.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import List

__all__: Sequence[str] = ("LinkEntry", "LINK_ENTRY_RE", "parse_link_entries", "format_link_entry")

LINK_ENTRY_RE = re.compile(
    r"^\s*(?:[-*+]\s+|\d+[.)]\s+)?"
    r"\[(?P<text>[^\]\n]+)\]"
    r"\((?P<url>https?://[^\s)]+)\)"
    r"(?:\s*(?::|-|–|—)\s*(?P<description>.*?))?\s*$"
)


@dataclass(slots=True)
class LinkEntry:
    text: str
    url: str
    description: str = ""

    def merge(self, other: LinkEntry) -> None:
        """Keep the longer anchor text and the longer description."""
        if len(other.text) > len(self.text):
            self.text = other.text
        if len(other.description) > len(self.description):
            self.description = other.description


def parse_link_entries(text: str) -> List[LinkEntry]:
    entries: List[LinkEntry] = []
    for line in text.splitlines():
        match = LINK_ENTRY_RE.match(line)
        if not match:
            continue
        entries.append(
            LinkEntry(
                text=match.group("text").strip(),
                url=match.group("url"),
                description=(match.group("description") or "").strip(),
            )
        )
    return entries


def format_link_entry(entry: LinkEntry) -> str:
    if entry.description:
        return f"- [{entry.text}]({entry.url}): {entry.description}"
    return f"- [{entry.text}]({entry.url})"


def format_link_entries(entries: Iterable[LinkEntry]) -> str:
    return "\n".join(format_link_entry(e) for e in entries)
