"""Cheap (title, description) recovery from a pasted listing chunk.

The classifier reads chunks properly, but it costs money. Before calling it
we guess each chunk's identity from the layout of the marketplace's search
results:

    Posted 2 hours ago            <- marker
    Build me a website            <- title, always the next line
    Fixed-price - Intermediate
    Est. budget:                  <- metadata marker
    $500                          <- metadata value
    We need a landing page ...    <- description starts here
    ...

Description rules are tried in order, first match wins. A chunk that does
not fit the layout at all yields ``None`` and is classified unfiltered.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

POSTED_LINE = re.compile(r"^Posted\s", re.I)
EST_LINE = re.compile(r"^Est\.\s*(budget|time):", re.I)

SNIPPET_CHARS = 200
MIN_TITLE_CHARS = 5
LONG_LINE_CHARS = 80
FALLBACK_TITLE_RANGE = (10, 150)


@dataclass(frozen=True)
class Identity:
    title: str
    desc_snippet: str = ""


@dataclass(frozen=True)
class ChunkLayout:
    lines: List[str]
    posted_idx: int

    @property
    def title_idx(self) -> int:
        return self.posted_idx + 1

    @property
    def body(self) -> List[str]:
        return self.lines[self.title_idx + 1:]

    def find(self, pattern: re.Pattern) -> Optional[int]:
        for idx, line in enumerate(self.lines):
            if pattern.match(line):
                return idx
        return None


def _clean_lines(chunk: str) -> List[str]:
    return [line.strip() for line in chunk.split("\n") if line.strip()]


def _after_est_marker(layout: ChunkLayout) -> Optional[str]:
    est_idx = layout.find(EST_LINE)
    if est_idx is None:
        return None
    # skip the marker and its value line
    start = est_idx + 2
    if start >= len(layout.lines):
        return None
    return " ".join(layout.lines[start:])[:SNIPPET_CHARS]


def _first_long_line(layout: ChunkLayout) -> Optional[str]:
    for line in layout.body:
        if len(line) > LONG_LINE_CHARS:
            return line[:SNIPPET_CHARS]
    return None


def _everything_after_title(layout: ChunkLayout) -> Optional[str]:
    return " ".join(layout.body)[:SNIPPET_CHARS]


DescriptionRule = Tuple[str, Callable[[ChunkLayout], Optional[str]]]

DESCRIPTION_RULES: Tuple[DescriptionRule, ...] = (
    ("est-marker", _after_est_marker),
    ("long-line", _first_long_line),
    ("remainder", _everything_after_title),
)


def _fallback_identity(lines: List[str]) -> Optional[Identity]:
    low, high = FALLBACK_TITLE_RANGE
    for line in lines:
        if low <= len(line) <= high:
            return Identity(title=line, desc_snippet="")
    return None


def describe(layout: ChunkLayout) -> Tuple[str, str]:
    """Run the description rules; returns ``(rule_name, snippet)``."""
    for name, rule in DESCRIPTION_RULES:
        snippet = rule(layout)
        if snippet:
            return name, snippet
    return "none", ""


def extract_identity(chunk: Optional[str]) -> Optional[Identity]:
    """Return the chunk's Identity, or None when it cannot be told apart.

    Never raises for string input; None is a signal to send the chunk to the
    classifier as-is, not a reason to drop it.
    """
    if not isinstance(chunk, str):
        return None
    lines = _clean_lines(chunk)
    posted_idx = next((i for i, line in enumerate(lines) if POSTED_LINE.match(line)), None)

    if posted_idx is None or posted_idx + 1 >= len(lines):
        return _fallback_identity(lines)

    layout = ChunkLayout(lines=lines, posted_idx=posted_idx)
    title = lines[layout.title_idx]
    if len(title) < MIN_TITLE_CHARS:
        return None

    _, snippet = describe(layout)
    return Identity(title=title, desc_snippet=snippet)
