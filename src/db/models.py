"""ORM models for job persistence."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, String, Text

from src.db.base import Base


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite DateTime columns store no offset."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class JobModel(Base):
    """Database representation of a marketing kit job."""

    __tablename__ = "jobs"

    id = Column(String(64), primary_key=True)
    email = Column(String(320), nullable=True)
    address = Column(Text, nullable=False, default="")
    status = Column(String(32), nullable=False)
    correlation_id = Column(String(255), nullable=True, index=True)
    kind = Column(String(32), nullable=False)
    artifact_key = Column(String(1024), nullable=True)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_jobs_correlation_id_created_at", "correlation_id", "created_at"),
    )
