"""Job lifecycle tracking backed by SQLite."""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from src.db.models import utcnow
from src.services.errors import InvalidTransitionError
from src.services.job_repository import JobRepository

logger = logging.getLogger(__name__)

STATUS_PROCESSING = "processing"
STATUS_PAID = "paid"
STATUS_READY = "ready"
STATUS_FAILED = "failed"

KIND_ONE_TIME = "one_time"
KIND_SUBSCRIPTION = "subscription"
KIND_DEMO = "demo"
JOB_KINDS = (KIND_ONE_TIME, KIND_SUBSCRIPTION, KIND_DEMO)

# Statuses only move forward; ready and failed are terminal.
ALLOWED_TRANSITIONS: Dict[str, frozenset] = {
    STATUS_PROCESSING: frozenset({STATUS_PAID, STATUS_READY, STATUS_FAILED}),
    STATUS_PAID: frozenset({STATUS_READY, STATUS_FAILED}),
    STATUS_READY: frozenset(),
    STATUS_FAILED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def _sources_for(target: str) -> List[str]:
    return [status for status, targets in ALLOWED_TRANSITIONS.items() if target in targets]


@dataclass
class JobRecord:
    """One marketing kit request and where it stands."""

    id: str
    address: str
    kind: str
    status: str = STATUS_PROCESSING
    email: Optional[str] = None
    correlation_id: Optional[str] = None
    artifact_key: Optional[str] = None
    last_error: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @staticmethod
    def new_id() -> str:
        return str(uuid.uuid4())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "address": self.address,
            "status": self.status,
            "correlation_id": self.correlation_id,
            "kind": self.kind,
            "artifact_key": self.artifact_key,
            "last_error": self.last_error,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class JobService:
    """Applies the job state machine on top of the repository.

    Every status write is conditional on the prior status, so the pipeline and
    the webhook reconciler cannot overwrite each other's forward progress.
    """

    def __init__(self, repository: Optional[JobRepository] = None) -> None:
        self._repository = repository or JobRepository()

    @property
    def repository(self) -> JobRepository:
        return self._repository

    def create_job(
        self,
        *,
        address: str,
        kind: str,
        email: Optional[str] = None,
        correlation_id: Optional[str] = None,
        job_id: Optional[str] = None,
    ) -> JobRecord:
        now = utcnow()
        record = JobRecord(
            id=job_id or JobRecord.new_id(),
            email=email,
            address=address,
            status=STATUS_PROCESSING,
            correlation_id=correlation_id or None,
            kind=kind,
            created_at=now,
            updated_at=now,
        )
        self._repository.create(record)
        logger.info("Created job %s (kind=%s)", record.id, kind)
        return record

    def mark_ready(self, job_id: str, artifact_key: str) -> JobRecord:
        changed = self._repository.update_status(
            job_id,
            STATUS_READY,
            artifact_key=artifact_key,
            expected=_sources_for(STATUS_READY),
        )
        if not changed:
            raise InvalidTransitionError(
                f"Job {job_id} cannot move to {STATUS_READY} from its current status"
            )
        return self._repository.get(job_id)

    def mark_paid(self, job_id: str) -> bool:
        """Record a confirmed payment; clears any artifact reference. False if rejected."""
        changed = self._repository.update_status(
            job_id,
            STATUS_PAID,
            artifact_key=None,
            expected=_sources_for(STATUS_PAID),
        )
        if not changed:
            logger.warning("Ignoring paid transition for job %s (missing or already past processing)", job_id)
        return bool(changed)

    def mark_failed(self, job_id: str, error: str) -> bool:
        self._repository.record_error(job_id, error)
        changed = self._repository.update_status(
            job_id,
            STATUS_FAILED,
            artifact_key=None,
            expected=_sources_for(STATUS_FAILED),
        )
        return bool(changed)

    def record_failure(self, job_id: str, step: str, error: str) -> None:
        """Attribute a pipeline failure to a step without moving the status."""
        self._repository.record_error(job_id, f"{step}: {error}")

    def get(self, job_id: str) -> Optional[JobRecord]:
        return self._repository.get(job_id)

    def find_latest_by_correlation(self, correlation_id: str) -> Optional[JobRecord]:
        if not correlation_id:
            return None
        return self._repository.find_latest_by_correlation(correlation_id)

    def list_recent(self, limit: int = 500) -> List[JobRecord]:
        return self._repository.list_recent(limit=limit)
