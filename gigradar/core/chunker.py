from __future__ import annotations

import re
from typing import List

from bs4 import BeautifulSoup

# A listing starts at its "Posted 3 hours ago" line. The lookahead keeps the
# marker attached to the chunk that follows it.
POSTED_SPLIT = re.compile(r"(?=^Posted\s.+)", re.MULTILINE | re.IGNORECASE)

# Clipboard HTML from a browser paste: the whole paste is markup. A tag
# mentioned inside plain listing text ("fix <div> overflow") is not.
HTML_DOCUMENT = re.compile(r"\A\s*(<!doctype\b|<[a-z][a-z0-9]*(\s[^>]*)?/?>)", re.I)


def looks_like_html(raw: str) -> bool:
    return bool(raw) and HTML_DOCUMENT.match(raw) is not None


def paste_to_text(raw: str) -> str:
    """Flatten an HTML paste to text, one block per line. Plain text passes through."""
    if not looks_like_html(raw):
        return raw or ""
    text = BeautifulSoup(raw, "html.parser").get_text("\n")
    lines = (" ".join(line.split()) for line in text.splitlines())
    return "\n".join(line for line in lines if line)


def split_into_chunks(raw_text: str) -> List[str]:
    """Split a pasted results page into one chunk per listing.

    Each chunk starts at a ``Posted ...`` line and runs until the next one.
    Text without any marker comes back as a single chunk; blank input gives
    an empty list. Chunks are stripped of surrounding whitespace.

    A description line that itself starts with "Posted " produces an extra
    chunk. That chunk usually fails identity extraction and goes to the
    classifier, which is preferable to merging two listings.
    """
    if not raw_text:
        return []
    return [piece.strip() for piece in POSTED_SPLIT.split(raw_text) if piece.strip()]


def chunk_paste(raw: str) -> List[str]:
    return split_into_chunks(paste_to_text(raw))
