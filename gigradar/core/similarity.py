from __future__ import annotations

from typing import Optional, Set

from .fingerprint import content_words

# Minimum overlap for two same-title postings to count as one listing.
OVERLAP_THRESHOLD = 0.4


def _word_set(text: Optional[str]) -> Set[str]:
    return set(content_words(text))


def description_overlap(text_a: Optional[str], text_b: Optional[str]) -> float:
    """Jaccard index of the content-word sets of two descriptions.

    Two empty sets are identical (1.0); one empty set shares nothing (0.0).
    """
    words_a = _word_set(text_a)
    words_b = _word_set(text_b)
    if not words_a and not words_b:
        return 1.0
    if not words_a or not words_b:
        return 0.0
    return len(words_a & words_b) / len(words_a | words_b)


def is_near_duplicate(text_a: Optional[str], text_b: Optional[str], threshold: float = OVERLAP_THRESHOLD) -> bool:
    return description_overlap(text_a, text_b) >= threshold
