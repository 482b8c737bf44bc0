from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import Enum, String, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gigradar.core.date_parse import parse_timestamp
from gigradar.core.fingerprint import fingerprint
from gigradar.core.pipeline import StoreError
from gigradar.db.models import BlockListEntry, Job, RunHistory

LOGGER = logging.getLogger(__name__)

KnownRow = Tuple[str, Optional[str]]


def _fit_columns(model, data: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only the model's columns, with strings cut to their VARCHAR length."""
    fitted: Dict[str, Any] = {}
    for col in model.__table__.columns:
        if col.key == "id" or col.key not in data:
            continue
        value = data[col.key]
        length = getattr(col.type, "length", None)
        if isinstance(value, str) and length and isinstance(col.type, String) and not isinstance(col.type, Enum):
            value = value[:length]
        fitted[col.key] = value
    return fitted


def _known_rows(session: Session, model) -> List[KnownRow]:
    stmt = select(model.dedup_hash, model.description_snippet).where(model.dedup_hash.isnot(None))
    return [(fp, snippet) for fp, snippet in session.execute(stmt).all() if fp]


def blocklist_rows(session: Session) -> List[KnownRow]:
    return _known_rows(session, BlockListEntry)


def posting_rows(session: Session) -> List[KnownRow]:
    return _known_rows(session, Job)


def _job_from_row(row: Dict[str, Any]) -> Job:
    """
    Build a Job from a pipeline posting row.
    posted_at arrives as the resolver's output: an ISO timestamp, or the
    listing's own label when it could not be resolved.
    """
    data = dict(row)
    posted = data.pop("posted_at", None)
    data["posted_at"] = parse_timestamp(posted)
    if posted and data["posted_at"] is None:
        data["posted_label"] = str(posted)
    return Job(**_fit_columns(Job, data))


def _block_entry_from_row(row: Dict[str, Any]) -> BlockListEntry:
    return BlockListEntry(**_fit_columns(BlockListEntry, row))


def insert_batch(
    session: Session,
    postings: Iterable[Dict[str, Any]],
    blocks: Iterable[Dict[str, Any]],
) -> List[Job]:
    """Insert one batch's postings and blocklist entries in a single commit."""
    jobs = [_job_from_row(r) for r in postings]
    session.add_all(jobs)
    session.add_all([_block_entry_from_row(r) for r in blocks])
    session.commit()
    return jobs


def record_run(session: Session, summary: Dict[str, Any]) -> RunHistory:
    run = RunHistory(**_fit_columns(RunHistory, summary))
    session.add(run)
    session.commit()
    return run


def get_job_by_id(session: Session, job_id: int) -> Optional[Job]:
    return session.query(Job).filter(Job.id == job_id).first()


def recent_runs(session: Session, limit: int = 20) -> Sequence[RunHistory]:
    return session.query(RunHistory).order_by(RunHistory.id.desc()).limit(limit).all()


class SqlStore:
    """Adapts a Session to the parse pipeline's store protocol."""

    def __init__(self, session: Session):
        self.session = session

    def blocklist_rows(self) -> List[KnownRow]:
        return blocklist_rows(self.session)

    def posting_rows(self) -> List[KnownRow]:
        return posting_rows(self.session)

    def _write(self, fn, *args):
        try:
            return fn(self.session, *args)
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError(str(exc)) from exc

    def save_batch(self, postings: List[Dict[str, Any]], blocks: List[Dict[str, Any]]) -> List[int]:
        return [job.id for job in self._write(insert_batch, postings, blocks)]

    def record_run(self, summary: Dict[str, Any]) -> None:
        self._write(record_run, summary)


# --- Fingerprint backfill ----------------------------------------------------

@dataclass
class BackfillSummary:
    checked: int
    updated: int
    dry_run: bool
    sample: list[dict]

    def to_dict(self) -> dict:
        return asdict(self)


def backfill_fingerprints(session: Session, *, dry_run: bool = False, sample_size: int = 10) -> BackfillSummary:
    """Recompute dedup_hash for every posting and blocklist row.

    Needed after any change to the fingerprint constants; otherwise old rows
    stop matching new pastes.
    """
    checked = 0
    updated = 0
    sample: list[dict] = []

    for model in (Job, BlockListEntry):
        for row in session.query(model).order_by(model.id.asc()).all():
            checked += 1
            fresh = fingerprint(row.title, row.description_snippet)
            if row.dedup_hash == fresh:
                continue
            updated += 1
            if len(sample) < sample_size:
                sample.append(
                    {
                        "table": model.__tablename__,
                        "id": row.id,
                        "title": row.title,
                        "old": row.dedup_hash,
                        "new": fresh,
                    }
                )
            if not dry_run:
                row.dedup_hash = fresh

    if not dry_run and updated:
        session.commit()

    return BackfillSummary(checked=checked, updated=updated, dry_run=dry_run, sample=sample)
