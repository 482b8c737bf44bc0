from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional, List
import logging

from fastapi import FastAPI, Depends, Query, HTTPException, Header
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import or_
from sqlalchemy.orm import Session

from gigradar import config
from gigradar.api.deps import db_session, classifier as classifier_dep
from gigradar.core.dedupe import KnownSetLoadError
from gigradar.core.pipeline import Classifier, execute_parse, prepare_parse
from gigradar.db.crud import SqlStore, get_job_by_id, recent_runs
from gigradar.db.models import Job
from gigradar.db.session import get_session


def require_admin(x_token: str | None = Header(default=None)) -> None:
    token = config.admin_token()
    if not token or x_token != token:
        raise HTTPException(status_code=401, detail="Unauthorized")


# -------------------------
# FastAPI setup
# -------------------------
app = FastAPI(title="Gig Radar API", version="0.1.0")
LOGGER = logging.getLogger(__name__)

# CORS (open for now; tighten before public deploy)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------------------------
# Pydantic models
# -------------------------
class JobOut(BaseModel):
    id: int
    title: str
    ai_verdict: str
    ai_score: Optional[float]
    pipeline_stage: str
    budget_display: Optional[str]
    posted_at: Optional[datetime]
    posted_label: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True  # pydantic v2


class JobsResponse(BaseModel):
    items: List[JobOut]
    total: int
    limit: int
    offset: int


class JobDetailOut(JobOut):
    description_snippet: Optional[str] = None
    ai_reasoning: Optional[str] = None
    client_location: Optional[str] = None
    client_spend: Optional[str] = None
    client_rating: Optional[str] = None
    proposals_count: Optional[str] = None
    has_hire: bool = False
    skills: List[str] = []
    dedup_hash: Optional[str] = None


class RunOut(BaseModel):
    id: int
    saved_search_id: Optional[str]
    total_pasted: int
    total_parsed: int
    total_go: int
    total_no_go: int
    total_review: int
    total_duplicates: int
    total_pre_filtered: int
    total_errors: int
    duration_ms: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True


class ParseRequest(BaseModel):
    raw_text: str = Field(min_length=1)
    saved_search_id: Optional[str] = None

    @field_validator("raw_text")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("raw_text is blank")
        return v


# -------------------------
# Routes
# -------------------------
@app.get("/", tags=["meta"])
async def root():
    return {"message": "Gig Radar API is running"}


@app.get("/healthz", tags=["meta"])
async def healthz():
    return {"status": "ok"}


OrderBy = Literal["created_desc", "created_asc", "score_desc"]


@app.get("/jobs", response_model=JobsResponse, tags=["data"])
def get_jobs(
    limit: int = Query(25, ge=1, le=100),
    offset: int = Query(0, ge=0),
    verdict: Optional[str] = Query(None, description="GO | NO-GO | NEEDS_REVIEW"),
    stage: Optional[str] = Query(None, description="Pipeline stage, e.g. new or rejected"),
    q: Optional[str] = Query(None, description="Substring match on title/description"),
    order: OrderBy = Query("created_desc"),
    session: Session = Depends(db_session),
):
    query = session.query(Job)
    if verdict:
        query = query.filter(Job.ai_verdict == verdict.upper())
    if stage:
        query = query.filter(Job.pipeline_stage == stage)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(Job.title.ilike(like), Job.description_snippet.ilike(like)))

    if order == "created_asc":
        query = query.order_by(Job.created_at.asc(), Job.id.asc())
    elif order == "score_desc":
        query = query.order_by(Job.ai_score.desc().nullslast(), Job.id.desc())
    else:
        query = query.order_by(Job.created_at.desc(), Job.id.desc())

    total = query.count()
    rows: list[Job] = query.offset(offset).limit(limit).all()
    items = [JobOut.model_validate(j) for j in rows]
    return JobsResponse(items=items, total=total, limit=limit, offset=offset)


@app.get("/jobs/{job_id}", response_model=JobDetailOut, tags=["data"])
def get_job_detail(job_id: int, session: Session = Depends(db_session)):
    j = get_job_by_id(session, job_id)
    if not j:
        raise HTTPException(status_code=404, detail="Job not found")
    return JobDetailOut.model_validate(j)


@app.get("/runs", response_model=List[RunOut], tags=["data"])
def get_runs(limit: int = Query(20, ge=1, le=100), session: Session = Depends(db_session)):
    return [RunOut.model_validate(r) for r in recent_runs(session, limit)]


@app.post("/jobs/parse", tags=["admin"])
def parse_jobs(
    body: ParseRequest,
    _admin: None = Depends(require_admin),
    classifier: Classifier = Depends(classifier_dep),
):
    """Split, dedup and classify a pasted results page; streams server-sent events."""
    # Loading the known set happens before streaming so a failure is a plain 503.
    with get_session() as session:
        try:
            plan = prepare_parse(
                body.raw_text,
                SqlStore(session),
                batch_size=config.batch_size(),
                saved_search_id=body.saved_search_id,
            )
        except KnownSetLoadError as exc:
            LOGGER.error("parse aborted: %s", exc)
            raise HTTPException(status_code=503, detail="Could not load known postings")

    def stream():
        with get_session() as s:
            for event in execute_parse(plan, classifier, SqlStore(s)):
                yield event.to_sse()
        yield "event: done\ndata: {}\n\n"

    return StreamingResponse(
        stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
