from __future__ import annotations

import logging
from typing import Any, Literal, Tuple

LOGGER = logging.getLogger(__name__)

VerdictBucket = Literal['go', 'no_go', 'review']
VerdictDecision = Tuple[VerdictBucket, str]

REJECTED_STAGE = "rejected"
NEW_STAGE = "new"


def _verdict_of(job: Any) -> str:
    verdict = job.get("ai_verdict") if isinstance(job, dict) else getattr(job, "ai_verdict", None)
    return (verdict or "").strip().upper()


def route_verdict(job: Any) -> VerdictDecision:
    """Return (bucket, pipeline_stage) for a classified listing.

    NO-GO listings are kept as rejected postings and also blocklisted;
    everything else starts in the ``new`` stage. Unknown verdicts are
    treated as GO so a listing is never silently discarded.
    """
    verdict = _verdict_of(job)
    if verdict == "NO-GO":
        return ("no_go", REJECTED_STAGE)
    if verdict == "NEEDS_REVIEW":
        return ("review", NEW_STAGE)
    return ("go", NEW_STAGE)


def should_blocklist(job: Any) -> bool:
    return route_verdict(job)[0] == "no_go"


def log_verdict_metrics(batch_index: int, go: int, no_go: int, review: int, duplicates: int) -> None:
    LOGGER.info(
        "verdict-routing batch=%s go=%s no_go=%s review=%s duplicates=%s",
        batch_index,
        go,
        no_go,
        review,
        duplicates,
    )
