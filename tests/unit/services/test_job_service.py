"""Tests for job status transitions."""

import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from daylight.core.exceptions import NotFoundError, ValidationError
from daylight.database.enums import JobStatus
from daylight.services.job_service import JobService, validate_job_transition


@pytest.mark.parametrize("current, target", [
    ("pending", "processing"),
    ("pending", "failed"),
    ("processing", "completed"),
    ("processing", "failed"),
])
def test_allowed_transitions(current, target):
    assert validate_job_transition(current, target) is True


@pytest.mark.parametrize("current, target", [
    ("pending", "completed"),
    ("processing", "pending"),
    ("completed", "processing"),
    ("completed", "failed"),
    ("failed", "completed"),
    ("failed", "processing"),
])
def test_illegal_transitions_raise(current, target):
    with pytest.raises(ValidationError):
        validate_job_transition(current, target)


@pytest.mark.parametrize("status", list(JobStatus))
def test_same_status_is_a_no_op(status):
    assert validate_job_transition(status, status) is False


@pytest.fixture
def job():
    return SimpleNamespace(id=uuid.uuid4(), status=JobStatus.PENDING.value)


@pytest.fixture
def job_service(mock_session, job) -> JobService:
    service = JobService(mock_session)
    service.job_repo = MagicMock()
    service.job_repo.get_by_id = AsyncMock(return_value=job)
    service.job_repo.update = AsyncMock()
    service.journal_repo = MagicMock()
    service.journal_repo.update_status = AsyncMock()
    return service


@pytest.mark.asyncio
async def test_mark_processing_updates_job_and_entry(job_service, mock_session, job):
    entry_id = uuid.uuid4()

    await job_service.mark_processing(job.id, entry_id)

    job_kwargs = job_service.job_repo.update.await_args.kwargs
    assert job_kwargs["status"] == "processing"
    assert job_kwargs["started_at"] is not None
    entry_call = job_service.journal_repo.update_status.await_args
    assert entry_call.args == (entry_id, "processing")
    assert entry_call.kwargs["processed_at"] is not None
    mock_session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_mark_processing_is_idempotent(job_service, job):
    job.status = JobStatus.PROCESSING.value

    await job_service.mark_processing(job.id, uuid.uuid4())

    job_service.job_repo.update.assert_not_awaited()


@pytest.mark.asyncio
async def test_finalize_records_report_and_raw_extraction(job_service, job):
    job.status = JobStatus.PROCESSING.value
    entry_id = uuid.uuid4()
    report = {"events_created": 1, "degraded": True}
    extraction = {"events": [], "action_items": []}

    await job_service.finalize(job.id, entry_id, extraction, report)

    entry_call = job_service.journal_repo.update_status.await_args
    assert entry_call.args == (entry_id, "completed")
    assert entry_call.kwargs["extraction_raw"] == extraction
    job_kwargs = job_service.job_repo.update.await_args.kwargs
    assert job_kwargs["status"] == "completed"
    assert job_kwargs["result_summary"] == report


@pytest.mark.asyncio
async def test_finalize_from_pending_is_rejected(job_service, job, mock_session):
    with pytest.raises(ValidationError):
        await job_service.finalize(job.id, uuid.uuid4(), {}, {})

    mock_session.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_mark_failed_cancels_entry(job_service, job):
    job.status = JobStatus.PROCESSING.value
    entry_id = uuid.uuid4()

    await job_service.mark_failed(job.id, entry_id, "model timed out")

    job_kwargs = job_service.job_repo.update.await_args.kwargs
    assert job_kwargs == {"status": "failed", "error_message": "model timed out"}
    entry_call = job_service.journal_repo.update_status.await_args
    assert entry_call.args == (entry_id, "cancelled")
    assert entry_call.kwargs == {"processing_error": "model timed out"}


@pytest.mark.asyncio
async def test_missing_job_raises_not_found(job_service):
    job_service.job_repo.get_by_id = AsyncMock(return_value=None)

    with pytest.raises(NotFoundError):
        await job_service.mark_processing(uuid.uuid4(), uuid.uuid4())
