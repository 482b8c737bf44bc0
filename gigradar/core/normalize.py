from __future__ import annotations
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

VERDICTS = ("GO", "NO-GO", "NEEDS_REVIEW")
BUDGET_TYPES = ("fixed", "hourly", "unknown")


class ParsedJob(BaseModel):
    """One listing as returned by the classifier."""

    title: str
    description_snippet: Optional[str] = None
    budget_display: Optional[str] = None
    budget_type: Literal["fixed", "hourly", "unknown"] = "unknown"
    client_location: Optional[str] = None
    client_spend: Optional[str] = None
    client_rating: Optional[str] = None
    proposals_count: Optional[str] = None
    has_hire: bool = False
    skills: list[str] = Field(default_factory=list)
    posted_at: Optional[str] = None
    ai_score: float = Field(ge=1, le=5)
    ai_verdict: Literal["GO", "NO-GO", "NEEDS_REVIEW"]
    ai_reasoning: str

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: str) -> str:
        v = normalize_title(v)
        if not v:
            raise ValueError("title is blank")
        return v

    @field_validator("budget_type", mode="before")
    @classmethod
    def _budget_type(cls, v):
        if v is None:
            return "unknown"
        v = str(v).strip().lower()
        return v if v in BUDGET_TYPES else "unknown"

    @field_validator("has_hire", mode="before")
    @classmethod
    def _has_hire(cls, v):
        return False if v is None else v

    @field_validator("skills", mode="before")
    @classmethod
    def _skills(cls, v):
        if v is None:
            return []
        return [str(s).strip() for s in v if s and str(s).strip()]

    @field_validator("client_rating", "client_spend", "proposals_count", mode="before")
    @classmethod
    def _stringify(cls, v):
        # models sometimes answer 4.9 instead of "4.9"
        if v is None or isinstance(v, str):
            return v
        return str(v)


def normalize_title(title: str) -> str:
    return " ".join((title or "").split()).strip()
