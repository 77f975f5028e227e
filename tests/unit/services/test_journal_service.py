"""Tests for journal submission and redo extraction."""

import uuid
from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError

from daylight.config import settings
from daylight.core.exceptions import (
    APIClientError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from daylight.schemas.journal import JournalSubmitRequest
from daylight.services.journal_service import JournalService
from daylight.temporal.workflows.journal_extraction import JournalExtractionWorkflow


@pytest.fixture
def temporal_client():
    client = MagicMock()
    client.start_workflow = AsyncMock()
    return client


@pytest.fixture
def entry():
    return SimpleNamespace(
        id=uuid.uuid4(),
        event_text="Yesterday at 7pm he was an hour late",
        reference_date=date(2026, 1, 30),
        status="completed",
    )


@pytest.fixture
def new_job(entry):
    return SimpleNamespace(id=uuid.uuid4(), status="pending", journal_entry_id=entry.id)


@pytest.fixture
def journal_service(mock_session, temporal_client, entry, new_job) -> JournalService:
    service = JournalService(mock_session, temporal_client_factory=AsyncMock(return_value=temporal_client))

    service.journal_repo = MagicMock()
    service.journal_repo.create = AsyncMock(return_value=entry)
    service.journal_repo.get_for_user = AsyncMock(return_value=entry)
    service.journal_repo.lock_entry = AsyncMock()
    service.journal_repo.add_evidence_links = AsyncMock(return_value=[])
    service.journal_repo.update_status = AsyncMock(return_value=entry)
    service.journal_repo.list_evidence_ids = AsyncMock(return_value=[])

    service.job_repo = MagicMock()
    service.job_repo.create_job = AsyncMock(return_value=new_job)
    service.job_repo.get_by_idempotency_key = AsyncMock(return_value=None)
    service.job_repo.get_active_for_entry = AsyncMock(return_value=None)
    service.job_repo.get_latest_for_entry = AsyncMock(return_value=None)
    service.job_repo.get_for_user = AsyncMock(return_value=new_job)

    service.event_repo = MagicMock()
    service.event_repo.get_ids_for_entry = AsyncMock(return_value=[])
    service.event_repo.delete_with_dependents = AsyncMock(return_value=0)
    service.event_repo.list_for_entry = AsyncMock(return_value=[])

    service.evidence_repo = MagicMock()
    service.evidence_repo.get_for_user = AsyncMock(return_value=SimpleNamespace(id=uuid.uuid4()))

    service.profile_repo = MagicMock()
    service.profile_repo.get_timezone = AsyncMock(return_value="America/Chicago")
    return service


class TestSubmit:

    @pytest.mark.asyncio
    async def test_submit_creates_entry_job_and_starts_workflow(
        self, journal_service, mock_session, temporal_client, user_id, entry, new_job
    ):
        evidence_id = uuid.uuid4()
        request = JournalSubmitRequest(
            event_text="  Yesterday at 7pm he was an hour late ",
            reference_date=date(2026, 1, 30),
            timezone="America/New_York",
            evidence_ids=[evidence_id, evidence_id],
        )

        response = await journal_service.submit(user_id, request, idempotency_key="abc")

        create_kwargs = journal_service.journal_repo.create.await_args.kwargs
        assert create_kwargs["event_text"] == "Yesterday at 7pm he was an hour late"
        assert create_kwargs["status"] == "processing"
        journal_service.journal_repo.add_evidence_links.assert_awaited_once_with(entry.id, [evidence_id])
        journal_service.job_repo.create_job.assert_awaited_once_with(user_id, entry.id, idempotency_key="abc")
        mock_session.commit.assert_awaited_once()

        args, kwargs = temporal_client.start_workflow.await_args
        assert args[0] == JournalExtractionWorkflow.run
        workflow_request = args[1]
        assert workflow_request.job_id == str(new_job.id)
        assert workflow_request.reference_date == "2026-01-30"
        assert workflow_request.timezone == "America/New_York"
        assert workflow_request.evidence_ids == [str(evidence_id)]
        assert kwargs["id"] == f"journal-extraction-{new_job.id}"
        assert kwargs["task_queue"] == settings.temporal_task_queue

        assert response.job_id == new_job.id
        assert response.workflow_id == f"journal-extraction-{new_job.id}"
        assert response.deduplicated is False

    @pytest.mark.asyncio
    async def test_profile_timezone_is_used_when_none_supplied(
        self, journal_service, temporal_client, user_id
    ):
        await journal_service.submit(user_id, JournalSubmitRequest(event_text="He was late"))

        workflow_request = temporal_client.start_workflow.await_args.args[1]
        assert workflow_request.timezone == "America/Chicago"
        assert workflow_request.reference_date == "2026-01-30"

    @pytest.mark.asyncio
    async def test_repeated_idempotency_key_returns_existing_job(
        self, journal_service, temporal_client, user_id, new_job
    ):
        journal_service.job_repo.get_by_idempotency_key = AsyncMock(return_value=new_job)

        response = await journal_service.submit(
            user_id, JournalSubmitRequest(event_text="He was late"), idempotency_key="abc"
        )

        assert response.deduplicated is True
        assert response.job_id == new_job.id
        journal_service.journal_repo.create.assert_not_awaited()
        temporal_client.start_workflow.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_key_returns_winner(
        self, journal_service, mock_session, temporal_client, user_id, new_job
    ):
        journal_service.job_repo.get_by_idempotency_key = AsyncMock(side_effect=[None, new_job])
        mock_session.commit = AsyncMock(side_effect=IntegrityError("INSERT", {}, Exception("duplicate key")))

        response = await journal_service.submit(
            user_id, JournalSubmitRequest(event_text="He was late"), idempotency_key="abc"
        )

        assert response.deduplicated is True
        mock_session.rollback.assert_awaited_once()
        temporal_client.start_workflow.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_blank_text_is_rejected(self, journal_service, user_id):
        with pytest.raises(ValidationError):
            await journal_service.submit(user_id, JournalSubmitRequest(event_text="   "))

    @pytest.mark.asyncio
    async def test_unknown_timezone_is_rejected(self, journal_service, user_id):
        with pytest.raises(ValidationError, match="Unknown timezone"):
            await journal_service.submit(
                user_id, JournalSubmitRequest(event_text="He was late", timezone="Nowhere/City")
            )

    @pytest.mark.asyncio
    async def test_evidence_owned_by_someone_else_is_rejected(self, journal_service, user_id):
        journal_service.evidence_repo.get_for_user = AsyncMock(return_value=None)

        with pytest.raises(ValidationError, match="Evidence"):
            await journal_service.submit(
                user_id, JournalSubmitRequest(event_text="He was late", evidence_ids=[uuid.uuid4()])
            )
        journal_service.journal_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_workflow_start_failure_fails_the_job(
        self, journal_service, temporal_client, user_id, entry, new_job
    ):
        temporal_client.start_workflow = AsyncMock(side_effect=RuntimeError("temporal unavailable"))

        with patch("daylight.services.journal_service.JobService") as job_service_cls:
            job_service_cls.return_value.mark_failed = AsyncMock()

            with pytest.raises(APIClientError):
                await journal_service.submit(user_id, JournalSubmitRequest(event_text="He was late"))

            job_id, entry_id, message = job_service_cls.return_value.mark_failed.await_args.args
            assert (job_id, entry_id) == (new_job.id, entry.id)
            assert "temporal unavailable" in message


class TestReprocess:

    @pytest.mark.asyncio
    async def test_deletes_all_prior_events_before_creating_job(
        self, journal_service, mock_session, temporal_client, user_id, entry, new_job
    ):
        reported_id, orphan_id = uuid.uuid4(), uuid.uuid4()
        evidence_id = uuid.uuid4()
        calls = []
        journal_service.job_repo.get_latest_for_entry = AsyncMock(return_value=SimpleNamespace(
            id=uuid.uuid4(), result_summary={"event_ids": [str(reported_id), "not-a-uuid"]}
        ))
        journal_service.event_repo.get_ids_for_entry = AsyncMock(return_value=[reported_id, orphan_id])
        journal_service.event_repo.delete_with_dependents = AsyncMock(
            side_effect=lambda ids, owner: calls.append(("delete", list(ids))) or len(ids)
        )
        journal_service.job_repo.create_job = AsyncMock(
            side_effect=lambda *args, **kwargs: calls.append(("create_job",)) or new_job
        )
        journal_service.journal_repo.list_evidence_ids = AsyncMock(return_value=[evidence_id])

        response = await journal_service.reprocess(user_id, entry.id)

        journal_service.journal_repo.lock_entry.assert_awaited_once_with(entry.id)
        assert calls == [("delete", [reported_id, orphan_id]), ("create_job",)]
        update_call = journal_service.journal_repo.update_status.await_args
        assert update_call.args == (entry.id, "processing")
        assert update_call.kwargs["processing_error"] is None
        mock_session.commit.assert_awaited_once()

        workflow_request = temporal_client.start_workflow.await_args.args[1]
        assert workflow_request.event_text == entry.event_text
        assert workflow_request.evidence_ids == [str(evidence_id)]
        assert workflow_request.timezone == "America/Chicago"
        assert response.job_id == new_job.id

    @pytest.mark.asyncio
    async def test_active_job_conflicts(self, journal_service, mock_session, temporal_client, user_id, entry):
        journal_service.job_repo.get_active_for_entry = AsyncMock(
            return_value=SimpleNamespace(id=uuid.uuid4(), status="processing")
        )

        with pytest.raises(ConflictError):
            await journal_service.reprocess(user_id, entry.id)

        journal_service.event_repo.delete_with_dependents.assert_not_awaited()
        mock_session.rollback.assert_awaited_once()
        temporal_client.start_workflow.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_text_is_rejected(self, journal_service, user_id, entry):
        entry.event_text = "  "

        with pytest.raises(ValidationError):
            await journal_service.reprocess(user_id, entry.id)

        journal_service.journal_repo.lock_entry.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_entry_is_not_found(self, journal_service, user_id):
        journal_service.journal_repo.get_for_user = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError):
            await journal_service.reprocess(user_id, uuid.uuid4())


class TestReads:

    @pytest.mark.asyncio
    async def test_cancel_marks_entry_cancelled(self, journal_service, mock_session, user_id, entry):
        await journal_service.cancel(user_id, entry.id)

        assert journal_service.journal_repo.update_status.await_args.args == (entry.id, "cancelled")
        mock_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_job_for_other_user_is_not_found(self, journal_service, user_id):
        journal_service.job_repo.get_for_user = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError):
            await journal_service.get_job(user_id, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_list_events_checks_entry_ownership(self, journal_service, user_id):
        journal_service.journal_repo.get_for_user = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError):
            await journal_service.list_events(user_id, uuid.uuid4())
        journal_service.event_repo.list_for_entry.assert_not_awaited()
