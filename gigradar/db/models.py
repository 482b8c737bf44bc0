from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Float,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from gigradar.core.normalize import BUDGET_TYPES, VERDICTS


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- SQLAlchemy base ---------------------------------------------------------

class Base(DeclarativeBase):
    """Declarative base for all models."""
    pass


# --- Enums -------------------------------------------------------------------

PIPELINE_STAGES = (
    "new",
    "go",
    "building",
    "ready",
    "applied",
    "replied",
    "won",
    "lost",
    "rejected",
    "waiting",
)


# --- Models ------------------------------------------------------------------

class Job(Base):
    """A classified posting. ``dedup_hash`` is compared on every future paste."""

    __tablename__ = "jobs"
    __table_args__ = (
        Index("ix_jobs_created_at", "created_at"),
        Index("ix_jobs_stage_created_at", "pipeline_stage", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description_snippet: Mapped[Optional[str]] = mapped_column(Text)

    budget_display: Mapped[Optional[str]] = mapped_column(String(120))
    budget_type: Mapped[str] = mapped_column(
        Enum(*BUDGET_TYPES, name="budget_type_enum", native_enum=False), default="unknown", nullable=False
    )
    client_location: Mapped[Optional[str]] = mapped_column(String(120))
    client_spend: Mapped[Optional[str]] = mapped_column(String(60))
    client_rating: Mapped[Optional[str]] = mapped_column(String(30))
    proposals_count: Mapped[Optional[str]] = mapped_column(String(30))
    has_hire: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    skills: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    # posted_label keeps the listing's own wording when it could not be resolved
    posted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    posted_label: Mapped[Optional[str]] = mapped_column(String(60))

    ai_score: Mapped[Optional[float]] = mapped_column(Float)
    ai_verdict: Mapped[str] = mapped_column(
        Enum(*VERDICTS, name="verdict_enum", native_enum=False), nullable=False, index=True
    )
    ai_reasoning: Mapped[Optional[str]] = mapped_column(Text)

    dedup_hash: Mapped[Optional[str]] = mapped_column(Text, index=True)
    pipeline_stage: Mapped[str] = mapped_column(
        Enum(*PIPELINE_STAGES, name="pipeline_stage_enum", native_enum=False), default="new", nullable=False
    )
    saved_search_id: Mapped[Optional[str]] = mapped_column(String(64))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Job id={self.id} verdict={self.ai_verdict} title={self.title!r}>"


class BlockListEntry(Base):
    """Postings never to be shown again (NO-GO verdicts, near-duplicates)."""

    __tablename__ = "block_list"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description_snippet: Mapped[Optional[str]] = mapped_column(Text)
    dedup_hash: Mapped[Optional[str]] = mapped_column(Text, index=True)
    reason: Mapped[Optional[str]] = mapped_column(Text)
    source_saved_search_id: Mapped[Optional[str]] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<BlockListEntry id={self.id} title={self.title!r}>"


class RunHistory(Base):
    """One row per parse run, for the dashboard."""

    __tablename__ = "run_history"

    id: Mapped[int] = mapped_column(primary_key=True)
    saved_search_id: Mapped[Optional[str]] = mapped_column(String(64))
    total_pasted: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_parsed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_go: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_no_go: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_review: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_duplicates: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_pre_filtered: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_errors: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    duration_ms: Mapped[Optional[int]] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<RunHistory id={self.id} parsed={self.total_parsed}>"


__all__ = [
    "Base",
    "Job",
    "BlockListEntry",
    "RunHistory",
    "PIPELINE_STAGES",
]
