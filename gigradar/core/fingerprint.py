"""Dedup fingerprints for pasted job postings.

A fingerprint is ``"<titlePart>|<descPart>"``:

- titlePart: title lowercased, everything outside ``[a-z0-9]`` removed,
  cut to ``TITLE_LIMIT`` characters.
- descPart: the first ``DESC_TOKEN_LIMIT`` content words of the snippet
  after sorting them alphabetically, joined with no separator.

Fingerprints are stored alongside postings and compared against rows
inserted long ago, so the constants below are frozen. Changing any of them
requires running ``scripts/backfill_fingerprints.py``.
"""
from __future__ import annotations

import re
from typing import List, Optional, Tuple

TITLE_LIMIT = 80
DESC_TOKEN_LIMIT = 8
MIN_WORD_LENGTH = 3

STOP_WORDS = frozenset(
    {
        "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "from", "is", "are", "was", "were", "be", "been",
        "being", "have", "has", "had", "do", "does", "did", "will", "would",
        "could", "should", "may", "might", "shall", "can", "our", "their",
        "this", "that", "these", "those", "it", "its", "we", "they", "you",
        "i", "my", "your", "his", "her", "am", "not", "no", "so", "if",
        "about", "up", "out", "as", "into", "also", "just", "than", "then",
        "each", "every", "all", "any", "both", "few", "more", "most", "other",
        "some", "such", "only", "own", "same", "very",
    }
)

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_NON_ALPHA = re.compile(r"[^a-z\s]")


def title_key(title: Optional[str]) -> str:
    """Lowercased title reduced to ``[a-z0-9]``, untruncated."""
    return _NON_ALNUM.sub("", (title or "").lower())


def content_words(text: Optional[str]) -> List[str]:
    """Tokenize ``text`` the way fingerprints and overlap scores expect.

    Lowercases, drops anything that is not a letter or whitespace, splits on
    whitespace and removes stop words and words shorter than three letters
    (these are mostly fragments left behind by snippet truncation).
    Duplicates and source order are preserved.
    """
    cleaned = _NON_ALPHA.sub("", (text or "").lower())
    return [w for w in cleaned.split() if len(w) >= MIN_WORD_LENGTH and w not in STOP_WORDS]


def description_key(text: Optional[str]) -> str:
    return "".join(sorted(content_words(text))[:DESC_TOKEN_LIMIT])


def fingerprint(title: Optional[str], description_snippet: Optional[str] = None) -> str:
    """Order- and stop-word-insensitive identity key for a posting."""
    title_part = title_key(title)[:TITLE_LIMIT]
    return f"{title_part}|{description_key(description_snippet)}"


def split_fingerprint(value: str) -> Tuple[str, str]:
    """Return ``(title_part, desc_part)``; the title part never contains ``|``."""
    title_part, _, desc_part = (value or "").partition("|")
    return title_part, desc_part
