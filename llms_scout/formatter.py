# File: llms_scout/formatter.py
"""llms_scout.formatter: cleans model output before it lands in the document.

Not a general markdown transformer. It removes the artefacts text models
tend to leak: code fences, bold/italic markers, horizontal rules, runs of
blank lines and lines of process commentary about the edit itself.
Heading (``#``) and list (``-``) markers are kept.
"""

from __future__ import annotations

import re
from typing import List, Sequence

__all__: Sequence[str] = ("normalize", "strip_code_fences", "is_meta_commentary")

_FENCED_BLOCK_RE = re.compile(r"```(?:markdown|md)?[ \t]*\n(.*?)\n?```", re.DOTALL | re.IGNORECASE)
_FENCE_LINE_RE = re.compile(r"^\s*```[\w-]*\s*$")
_BOLD_RE = re.compile(r"(\*\*|__)(?=\S)(.+?)(?<=\S)\1")
_ITALIC_STAR_RE = re.compile(r"(?<![\w*])\*(?=[^\s*])([^*\n]+?)(?<=\S)\*(?![\w*])")
_ITALIC_UNDERSCORE_RE = re.compile(r"(?<![\w_])_(?=[^\s_])([^_\n]+?)(?<=\S)_(?![\w_])")
_RULE_RE = re.compile(r"^\s*([-*_])(?:\s*\1){2,}\s*$")
_BULLET_RE = re.compile(r"^(\s*)[*+](\s+)")
_BLANK_RUN_RE = re.compile(r"\n{3,}")
# link targets and bare URLs are left alone by the emphasis pass
_URL_SPAN_RE = re.compile(r"\]\([^)\s]+\)|(?:https?://|www\.)[^\s)\]>*]+", re.IGNORECASE)
_SLOT_RE = re.compile(r"\x00(\d+)\x00")

META_COMMENTARY_PATTERNS: Sequence[re.Pattern[str]] = tuple(
    re.compile(p)
    for p in (
        r"^(?:Organization|Organisation|Structure|Formatting|Consolidation|Deduplication|"
        r"Changes(?: Made)?|Notes?|Explanation|Rationale|Summary of Changes)\s*:",
        r"^Removed Redundan",
        r"^(?:Here is|Here's|Below is) (?:the|a|an) (?:consolidated|merged|combined|updated|final|revised)\b",
        r"^(?:I have|I've) (?:consolidated|merged|combined|removed|organized|organised)\b",
        r"^-\s+(?:Removed|Added|Fixed|Improved)\b",
    )
)


def strip_code_fences(text: str) -> str:
    """Unwrap a fenced markdown block, then drop any stray fence lines."""
    match = _FENCED_BLOCK_RE.search(text)
    if match and len(match.group(1).strip()) >= len(text.strip()) // 2:
        text = match.group(1)
    return "\n".join(line for line in text.splitlines() if not _FENCE_LINE_RE.match(line))


def _unemphasize(line: str) -> str:
    spans: List[str] = []

    def stash(match: re.Match[str]) -> str:
        spans.append(match.group(0))
        return f"\x00{len(spans) - 1}\x00"

    line = _URL_SPAN_RE.sub(stash, line)
    line = _BULLET_RE.sub(r"\1-\2", line)
    line = _BOLD_RE.sub(r"\2", line)
    line = _ITALIC_STAR_RE.sub(r"\1", line)
    line = _ITALIC_UNDERSCORE_RE.sub(r"\1", line)
    return _SLOT_RE.sub(lambda m: spans[int(m.group(1))], line)


def is_meta_commentary(line: str) -> bool:
    stripped = line.strip()
    return any(p.match(stripped) for p in META_COMMENTARY_PATTERNS)


def normalize(text: str) -> str:
    if not text:
        return ""
    text = strip_code_fences(text.replace("\r\n", "\n"))
    lines: List[str] = []
    for raw in text.splitlines():
        if _RULE_RE.match(raw):
            continue
        line = _unemphasize(raw).rstrip()
        if is_meta_commentary(line):
            continue
        lines.append(line)
    return _BLANK_RUN_RE.sub("\n\n", "\n".join(lines)).strip()
