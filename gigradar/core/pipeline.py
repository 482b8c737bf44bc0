"""Parse run: pasted text in, deduplicated classified postings out.

    prepare_parse   chunk -> load known set -> pre-filter -> batches
    execute_parse   per batch: classify -> validate -> post-filter -> store

``prepare_parse`` raises KnownSetLoadError before anything is streamed.
``execute_parse`` is a generator of ParseEvent and always ends with a
``summary`` event; classifier and storage failures only cost their batch.
Batches run strictly in order because each one grows the known set that
the next one is checked against.
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol, Sequence

from pydantic import ValidationError

from gigradar.filters.verdict import log_verdict_metrics, route_verdict

from .chunker import paste_to_text, split_into_chunks
from .date_parse import resolve_relative_time
from .dedupe import (
    KnownFingerprints,
    KnownRowSource,
    PrefilterResult,
    load_known_fingerprints,
    postfilter_records,
    prefilter_chunks,
)
from .normalize import ParsedJob

LOGGER = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 8


class ClassifierError(RuntimeError):
    """A classifier call failed or returned something unusable."""


class StoreError(RuntimeError):
    """Writing a batch's results to storage failed."""


class Classifier(Protocol):
    def classify(self, batch_text: str) -> List[Dict[str, Any]]: ...


class PostingStore(KnownRowSource, Protocol):
    def save_batch(self, postings: List[Dict[str, Any]], blocks: List[Dict[str, Any]]) -> List[Any]:
        """Store one batch atomically; returns the new posting ids."""
        ...

    def record_run(self, summary: Dict[str, Any]) -> None: ...


@dataclass
class ParseEvent:
    kind: str  # batch | error | summary
    data: Dict[str, Any]

    def to_sse(self) -> str:
        return f"event: {self.kind}\ndata: {json.dumps(self.data, default=str)}\n\n"


@dataclass
class ParsePlan:
    raw_text: str
    chunks: List[str]
    prefilter: PrefilterResult
    known: KnownFingerprints
    batches: List[List[str]]
    saved_search_id: Optional[str] = None
    started_at: float = field(default_factory=time.monotonic)

    @property
    def total_batches(self) -> int:
        return len(self.batches)


@dataclass
class RunSummary:
    total_found: int = 0
    total_parsed: int = 0
    total_go: int = 0
    total_no_go: int = 0
    total_review: int = 0
    total_duplicates: int = 0
    total_pre_filtered: int = 0
    total_errors: int = 0
    duration_ms: int = 0
    all_duplicates: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


def make_batches(items: Sequence[str], size: int) -> List[List[str]]:
    size = max(1, int(size))
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def prepare_parse(
    raw_text: str,
    store: KnownRowSource,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    saved_search_id: Optional[str] = None,
) -> ParsePlan:
    text = paste_to_text(raw_text)
    chunks = split_into_chunks(text)
    known = load_known_fingerprints(store)
    prefilter = prefilter_chunks(chunks, known)

    if chunks:
        to_process = prefilter.to_classify
    else:
        # nothing looked like a listing boundary; let the classifier sort it out
        to_process = [text] if text.strip() else []

    return ParsePlan(
        raw_text=text,
        chunks=chunks,
        prefilter=prefilter,
        known=known,
        batches=make_batches(to_process, batch_size),
        saved_search_id=saved_search_id,
    )


def validate_records(raw_records: Iterable[Any], *, batch_index: int = 0) -> tuple[List[ParsedJob], int]:
    """Validate classifier records one by one. Returns (valid, dropped_count)."""
    valid: List[ParsedJob] = []
    dropped = 0
    for raw in raw_records:
        try:
            valid.append(ParsedJob.model_validate(raw))
        except ValidationError as exc:
            dropped += 1
            LOGGER.warning("batch=%s dropped invalid record: %s", batch_index, exc.errors()[:1])
    return valid, dropped


def build_posting_row(job: ParsedJob, fp: str, stage: str, saved_search_id: Optional[str]) -> Dict[str, Any]:
    row = job.model_dump()
    row["posted_at"] = resolve_relative_time(job.posted_at)
    row["dedup_hash"] = fp
    row["pipeline_stage"] = stage
    row["saved_search_id"] = saved_search_id
    return row


def build_block_entry(job: ParsedJob, fp: str, reason: str, saved_search_id: Optional[str]) -> Dict[str, Any]:
    return {
        "title": job.title,
        "description_snippet": job.description_snippet,
        "dedup_hash": fp,
        "reason": reason,
        "source_saved_search_id": saved_search_id,
    }


def _error(batch_index: int, total: int, message: str) -> ParseEvent:
    return ParseEvent("error", {"batch_index": batch_index, "total_batches": total, "message": message})


def _run_batch(
    plan: ParsePlan,
    batch_index: int,
    classifier: Classifier,
    store: PostingStore,
    summary: RunSummary,
) -> ParseEvent:
    total = plan.total_batches
    batch_text = "\n".join(plan.batches[batch_index - 1])

    try:
        raw_records = list(classifier.classify(batch_text) or [])
    except ClassifierError as exc:
        LOGGER.error("batch=%s/%s classifier failed: %s", batch_index, total, exc)
        summary.total_errors += 1
        return _error(batch_index, total, f"Batch {batch_index} classification failed: {exc}")
    except Exception as exc:
        LOGGER.exception("batch=%s/%s classifier raised unexpectedly", batch_index, total)
        summary.total_errors += 1
        return _error(batch_index, total, f"Batch {batch_index} classification failed: {exc}")

    records, dropped = validate_records(raw_records, batch_index=batch_index)
    if not records:
        summary.total_errors += 1
        return _error(batch_index, total, f"Batch {batch_index} returned no jobs")

    post = postfilter_records(records, plan.known)

    postings: List[Dict[str, Any]] = []
    blocks: List[Dict[str, Any]] = []
    counts = {"go": 0, "no_go": 0, "review": 0}
    for job, fp in post.accepted:
        bucket, stage = route_verdict(job)
        counts[bucket] += 1
        postings.append(build_posting_row(job, fp, stage, plan.saved_search_id))
        if bucket == "no_go":
            blocks.append(build_block_entry(job, fp, job.ai_reasoning, plan.saved_search_id))
    for job, match in post.duplicates:
        if match.kind == "near":
            blocks.append(build_block_entry(job, match.fingerprint, match.reason, plan.saved_search_id))

    try:
        stored = store.save_batch(postings, blocks) if (postings or blocks) else []
    except StoreError as exc:
        LOGGER.error("batch=%s/%s store failed: %s", batch_index, total, exc)
        summary.total_errors += 1
        return _error(batch_index, total, f"Batch {batch_index} failed to save: {exc}")

    summary.total_parsed += len(records)
    summary.total_go += counts["go"]
    summary.total_no_go += counts["no_go"]
    summary.total_review += counts["review"]
    summary.total_duplicates += len(post.duplicates)
    log_verdict_metrics(batch_index, counts["go"], counts["no_go"], counts["review"], len(post.duplicates))

    return ParseEvent(
        "batch",
        {
            "batch_index": batch_index,
            "total_batches": total,
            "parsed": len(records),
            "accepted": len(post.accepted),
            "duplicates": len(post.duplicates),
            "errors": dropped,
            **counts,
            "posting_ids": stored,
        },
    )


def _finish(plan: ParsePlan, store: PostingStore, summary: RunSummary) -> ParseEvent:
    summary.total_pre_filtered = plan.prefilter.pre_filtered
    summary.total_found = summary.total_parsed + summary.total_pre_filtered
    summary.duration_ms = int((time.monotonic() - plan.started_at) * 1000)

    run = summary.to_dict() | {"total_pasted": len(plan.chunks), "saved_search_id": plan.saved_search_id}
    try:
        store.record_run(run)
    except StoreError as exc:
        LOGGER.error("run history not recorded: %s", exc)

    LOGGER.info(
        "parse-run found=%s parsed=%s go=%s no_go=%s review=%s duplicates=%s pre_filtered=%s errors=%s ms=%s",
        summary.total_found,
        summary.total_parsed,
        summary.total_go,
        summary.total_no_go,
        summary.total_review,
        summary.total_duplicates,
        summary.total_pre_filtered,
        summary.total_errors,
        summary.duration_ms,
    )
    return ParseEvent("summary", summary.to_dict())


def execute_parse(plan: ParsePlan, classifier: Classifier, store: PostingStore) -> Iterator[ParseEvent]:
    summary = RunSummary()

    if plan.prefilter.all_duplicates:
        summary.all_duplicates = True
        yield _finish(plan, store, summary)
        return

    for batch_index in range(1, plan.total_batches + 1):
        yield _run_batch(plan, batch_index, classifier, store, summary)

    yield _finish(plan, store, summary)


def run_parse(
    raw_text: str,
    classifier: Classifier,
    store: PostingStore,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    saved_search_id: Optional[str] = None,
) -> List[ParseEvent]:
    """Eager convenience wrapper around prepare_parse + execute_parse."""
    plan = prepare_parse(raw_text, store, batch_size=batch_size, saved_search_id=saved_search_id)
    return list(execute_parse(plan, classifier, store))
