"""Database repository for marketing kit jobs."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterable, List, Optional, Sequence, TYPE_CHECKING

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config.settings import DATABASE_URL
from src.db.base import Base, get_engine, get_session_factory
from src.db.models import JobModel, utcnow
from src.services.errors import DuplicateJobError

if TYPE_CHECKING:  # pragma: no cover
    from src.services.job_service import JobRecord


class JobRepository:
    """Encapsulates persistence logic for job records. No lifecycle rules live here."""

    def __init__(self, database_url: str = DATABASE_URL) -> None:
        self._engine = get_engine(database_url)
        self._session_factory = get_session_factory(database_url)

    def create_schema(self) -> None:
        Base.metadata.create_all(bind=self._engine)

    @contextmanager
    def session_scope(self) -> Iterable[Session]:
        session: Session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create(self, record: "JobRecord") -> None:
        try:
            with self.session_scope() as session:
                if session.get(JobModel, record.id) is not None:
                    raise DuplicateJobError(f"Job {record.id} already exists")
                session.add(
                    JobModel(
                        id=record.id,
                        email=record.email,
                        address=record.address,
                        status=record.status,
                        correlation_id=record.correlation_id,
                        kind=record.kind,
                        artifact_key=record.artifact_key,
                        last_error=record.last_error,
                        created_at=record.created_at,
                        updated_at=record.updated_at,
                    )
                )
                session.flush()
        except IntegrityError as error:
            raise DuplicateJobError(f"Job {record.id} already exists") from error

    def update_status(
        self,
        job_id: str,
        status: str,
        artifact_key: Optional[str] = None,
        expected: Optional[Sequence[str]] = None,
    ) -> int:
        """Write status and artifact key, optionally only when the current status is in ``expected``.

        Returns the number of rows changed; 0 means no such job or the expected status no longer holds.
        """
        stmt = update(JobModel).where(JobModel.id == job_id)
        if expected is not None:
            stmt = stmt.where(JobModel.status.in_(list(expected)))
        stmt = stmt.values(
            status=status,
            artifact_key=artifact_key,
            updated_at=utcnow(),
        )

        with self.session_scope() as session:
            result = session.execute(stmt)
            return result.rowcount or 0

    def record_error(self, job_id: str, message: str) -> int:
        stmt = (
            update(JobModel)
            .where(JobModel.id == job_id)
            .values(last_error=message, updated_at=utcnow())
        )
        with self.session_scope() as session:
            result = session.execute(stmt)
            return result.rowcount or 0

    def get(self, job_id: str) -> Optional["JobRecord"]:
        with self.session_scope() as session:
            model = session.get(JobModel, job_id)
            return self._model_to_record(model)

    def find_latest_by_correlation(self, correlation_id: str) -> Optional["JobRecord"]:
        stmt = (
            select(JobModel)
            .where(JobModel.correlation_id == correlation_id)
            .order_by(JobModel.created_at.desc())
            .limit(1)
        )
        with self.session_scope() as session:
            model = session.scalars(stmt).first()
            return self._model_to_record(model)

    def list_recent(self, limit: int = 500) -> List["JobRecord"]:
        stmt = select(JobModel).order_by(JobModel.created_at.desc()).limit(limit)

        with self.session_scope() as session:
            models = session.scalars(stmt).all()
            return [record for record in map(self._model_to_record, models) if record is not None]

    def _model_to_record(self, model: Optional[JobModel]) -> Optional["JobRecord"]:
        if model is None:
            return None
        from src.services.job_service import JobRecord

        return JobRecord(
            id=model.id,
            email=model.email,
            address=model.address,
            status=model.status,
            correlation_id=model.correlation_id,
            kind=model.kind,
            artifact_key=model.artifact_key,
            last_error=model.last_error,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
