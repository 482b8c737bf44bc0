from __future__ import annotations

from typing import Generator

from fastapi import HTTPException
from sqlalchemy.orm import Session

from gigradar.classify.claude import ClaudeClassifier
from gigradar.core.pipeline import Classifier
from gigradar.db.session import get_session


def db_session() -> Generator[Session, None, None]:
    """FastAPI dependency that yields a SQLAlchemy :class:`Session`.

    Usage in route handlers:
        def handler(session: Session = Depends(db_session)):
            ...
    """
    with get_session() as session:
        yield session


def classifier() -> Classifier:
    """FastAPI dependency for the listing classifier (overridden in tests)."""
    try:
        return ClaudeClassifier.from_env()
    except ValueError as exc:
        raise HTTPException(status_code=503, detail=str(exc))


__all__ = ["db_session", "classifier"]
