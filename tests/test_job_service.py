import pytest

from src.services.errors import InvalidTransitionError
from src.services.job_service import (
    KIND_DEMO,
    KIND_ONE_TIME,
    STATUS_FAILED,
    STATUS_PAID,
    STATUS_PROCESSING,
    STATUS_READY,
    can_transition,
)


def test_transition_table():
    assert can_transition(STATUS_PROCESSING, STATUS_PAID)
    assert can_transition(STATUS_PROCESSING, STATUS_READY)
    assert can_transition(STATUS_PAID, STATUS_READY)
    assert can_transition(STATUS_PAID, STATUS_FAILED)

    assert not can_transition(STATUS_READY, STATUS_PAID)
    assert not can_transition(STATUS_READY, STATUS_PROCESSING)
    assert not can_transition(STATUS_FAILED, STATUS_READY)
    assert not can_transition(STATUS_PAID, STATUS_PROCESSING)


def test_create_job_starts_processing(job_service):
    job = job_service.create_job(address="1 Main St", kind=KIND_DEMO)

    stored = job_service.get(job.id)
    assert stored.status == STATUS_PROCESSING
    assert stored.kind == KIND_DEMO
    assert stored.correlation_id is None
    assert stored.artifact_key is None


def test_mark_ready_sets_artifact(job_service):
    job = job_service.create_job(address="1 Main St", kind=KIND_DEMO)

    ready = job_service.mark_ready(job.id, "kits/abc.zip")

    assert ready.status == STATUS_READY
    assert ready.artifact_key == "kits/abc.zip"


def test_mark_ready_twice_is_rejected(job_service):
    job = job_service.create_job(address="1 Main St", kind=KIND_DEMO)
    job_service.mark_ready(job.id, "kits/abc.zip")

    with pytest.raises(InvalidTransitionError):
        job_service.mark_ready(job.id, "kits/other.zip")

    assert job_service.get(job.id).artifact_key == "kits/abc.zip"


def test_mark_paid_then_ready(job_service):
    job = job_service.create_job(
        address="1 Main St", kind=KIND_ONE_TIME, email="a@b.com", correlation_id="cs_1"
    )

    assert job_service.mark_paid(job.id) is True
    assert job_service.get(job.id).status == STATUS_PAID

    ready = job_service.mark_ready(job.id, "kits/abc.zip")
    assert ready.status == STATUS_READY


def test_mark_paid_does_not_overwrite_ready_job(job_service):
    job = job_service.create_job(address="1 Main St", kind=KIND_ONE_TIME, correlation_id="cs_1")
    job_service.mark_ready(job.id, "kits/abc.zip")

    assert job_service.mark_paid(job.id) is False

    stored = job_service.get(job.id)
    assert stored.status == STATUS_READY
    assert stored.artifact_key == "kits/abc.zip"


def test_mark_paid_unknown_job_returns_false(job_service):
    assert job_service.mark_paid("nope") is False


def test_record_failure_keeps_status(job_service):
    job = job_service.create_job(address="1 Main St", kind=KIND_DEMO)

    job_service.record_failure(job.id, "upload_archive", "bucket unreachable")

    stored = job_service.get(job.id)
    assert stored.status == STATUS_PROCESSING
    assert stored.last_error == "upload_archive: bucket unreachable"


def test_mark_failed_is_terminal(job_service):
    job = job_service.create_job(address="1 Main St", kind=KIND_DEMO)

    assert job_service.mark_failed(job.id, "operator cancelled") is True
    assert job_service.get(job.id).status == STATUS_FAILED

    with pytest.raises(InvalidTransitionError):
        job_service.mark_ready(job.id, "kits/abc.zip")


def test_find_latest_by_correlation_ignores_blank(job_service):
    job_service.create_job(address="1 Main St", kind=KIND_DEMO)
    assert job_service.find_latest_by_correlation("") is None


def test_to_dict_serializes_dates(job_service):
    job = job_service.create_job(address="1 Main St", kind=KIND_DEMO)

    data = job_service.get(job.id).to_dict()
    assert data["id"] == job.id
    assert data["status"] == STATUS_PROCESSING
    assert isinstance(data["created_at"], str)
