"""Journal submission, redo extraction and read access for the API layer."""

import uuid
from typing import Awaitable, Callable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from temporalio.client import Client as TemporalClient
from temporalio.exceptions import WorkflowAlreadyStartedError

from daylight.config import settings
from daylight.core.exceptions import (
    APIClientError,
    AppError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from daylight.core.temporal_client import get_temporal_client
from daylight.database.enums import JournalEntryStatus
from daylight.database.models import Event, Job, JournalEntry
from daylight.repositories.event_repository import EventRepository
from daylight.repositories.evidence_repository import EvidenceRepository
from daylight.repositories.job_repository import JobRepository
from daylight.repositories.journal_repository import JournalEntryRepository
from daylight.repositories.profile_repository import ProfileRepository
from daylight.schemas.journal import JournalSubmitRequest, JournalSubmitResponse
from daylight.services.job_service import JobService
from daylight.temporal.constants import workflow_id_for_job
from daylight.temporal.workflows.journal_extraction import (
    JournalExtractionRequest,
    JournalExtractionWorkflow,
)
from daylight.utils.logging import get_logger
from daylight.utils.timezone import is_valid_timezone

LOGGER = get_logger(__name__)


class JournalService:
    """Creates journal entries and queues their extraction workflows.

    Database writes for a request are committed before the workflow is
    started, so the worker always sees the entry and its pending job.
    """

    def __init__(
        self,
        session: AsyncSession,
        temporal_client_factory: Callable[[], Awaitable[TemporalClient]] = get_temporal_client,
    ):
        self.session = session
        self.temporal_client_factory = temporal_client_factory
        self.journal_repo = JournalEntryRepository(session)
        self.job_repo = JobRepository(session)
        self.event_repo = EventRepository(session)
        self.evidence_repo = EvidenceRepository(session)
        self.profile_repo = ProfileRepository(session)

    async def submit(
        self,
        user_id: UUID,
        request: JournalSubmitRequest,
        idempotency_key: Optional[str] = None,
    ) -> JournalSubmitResponse:
        """Create an entry, attach evidence and start extraction.

        A request repeating an ``idempotency_key`` the user already used
        returns the job created the first time.

        Raises:
            ValidationError: Empty narrative, unknown timezone or evidence
                that does not belong to the user
            APIClientError: If the workflow could not be started
        """
        if idempotency_key:
            existing = await self.job_repo.get_by_idempotency_key(user_id, idempotency_key)
            if existing:
                LOGGER.info(f"Returning existing job {existing.id} for idempotency key")
                return self._submit_response(existing, deduplicated=True)

        event_text = request.event_text.strip()
        if not event_text:
            raise ValidationError("Journal entry text is required")
        if request.timezone and not is_valid_timezone(request.timezone):
            raise ValidationError(f"Unknown timezone: {request.timezone}")

        evidence_ids = list(dict.fromkeys(request.evidence_ids))
        await self._check_evidence_ownership(user_id, evidence_ids)

        try:
            entry = await self.journal_repo.create(
                id=uuid.uuid4(),
                user_id=user_id,
                event_text=event_text,
                reference_date=request.reference_date,
                reference_time_description=request.reference_time_description,
                status=JournalEntryStatus.PROCESSING.value,
            )
            if evidence_ids:
                await self.journal_repo.add_evidence_links(entry.id, evidence_ids)
            job = await self.job_repo.create_job(
                user_id, entry.id, idempotency_key=idempotency_key
            )
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if idempotency_key:
                existing = await self.job_repo.get_by_idempotency_key(user_id, idempotency_key)
                if existing:
                    return self._submit_response(existing, deduplicated=True)
            raise DatabaseError("Failed to create journal entry", e) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError("Failed to create journal entry", e) from e

        timezone = await self._resolve_timezone(user_id, request.timezone)
        await self._start_extraction(
            job=job,
            entry=entry,
            user_id=user_id,
            event_text=event_text,
            timezone=timezone,
            evidence_ids=evidence_ids,
        )
        return self._submit_response(job)

    async def reprocess(self, user_id: UUID, journal_entry_id: UUID) -> JournalSubmitResponse:
        """Discard an entry's events and run extraction again.

        Prior events are found through the latest job's reported
        ``event_ids`` as well as ``events.journal_entry_id``. Their deletion,
        the new job and the entry reset share one transaction held under the
        entry's advisory lock.

        Raises:
            NotFoundError: If the entry does not exist for this user
            ValidationError: If the entry has no text to extract from
            ConflictError: If an extraction is already pending or running
        """
        entry = await self._get_entry(user_id, journal_entry_id)
        event_text = (entry.event_text or "").strip()
        if not event_text:
            raise ValidationError("Journal entry has no text to extract from")

        try:
            await self.journal_repo.lock_entry(journal_entry_id)

            active = await self.job_repo.get_active_for_entry(journal_entry_id, user_id)
            if active:
                raise ConflictError(
                    f"Extraction already {active.status} for journal entry {journal_entry_id}"
                )

            prior_ids = await self._prior_event_ids(user_id, journal_entry_id)
            deleted = await self.event_repo.delete_with_dependents(prior_ids, user_id)

            job = await self.job_repo.create_job(user_id, journal_entry_id)
            await self.journal_repo.update_status(
                journal_entry_id,
                JournalEntryStatus.PROCESSING.value,
                processing_error=None,
                completed_at=None,
            )
            evidence_ids = await self.journal_repo.list_evidence_ids(journal_entry_id)
            await self.session.commit()
        except AppError:
            await self.session.rollback()
            raise
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError(f"Failed to reset journal entry {journal_entry_id}", e) from e

        LOGGER.info(
            f"Reprocessing journal entry {journal_entry_id}: removed {deleted} prior events",
            extra={"job_id": str(job.id)}
        )

        timezone = await self._resolve_timezone(user_id, None)
        await self._start_extraction(
            job=job,
            entry=entry,
            user_id=user_id,
            event_text=event_text,
            timezone=timezone,
            evidence_ids=evidence_ids,
        )
        return self._submit_response(job)

    async def cancel(self, user_id: UUID, journal_entry_id: UUID) -> JournalEntry:
        """Mark an entry cancelled. A workflow that is already running is not aborted."""
        await self._get_entry(user_id, journal_entry_id)
        try:
            entry = await self.journal_repo.update_status(
                journal_entry_id, JournalEntryStatus.CANCELLED.value
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError(f"Failed to cancel journal entry {journal_entry_id}", e) from e
        return entry

    async def get_entry(self, user_id: UUID, journal_entry_id: UUID) -> JournalEntry:
        return await self._get_entry(user_id, journal_entry_id)

    async def list_events(self, user_id: UUID, journal_entry_id: UUID) -> List[Event]:
        await self._get_entry(user_id, journal_entry_id)
        return await self.event_repo.list_for_entry(journal_entry_id, user_id)

    async def get_job(self, user_id: UUID, job_id: UUID) -> Job:
        job = await self.job_repo.get_for_user(job_id, user_id)
        if job is None:
            raise NotFoundError(f"Job {job_id} not found")
        return job

    async def _get_entry(self, user_id: UUID, journal_entry_id: UUID) -> JournalEntry:
        entry = await self.journal_repo.get_for_user(journal_entry_id, user_id)
        if entry is None:
            raise NotFoundError(f"Journal entry {journal_entry_id} not found")
        return entry

    async def _check_evidence_ownership(self, user_id: UUID, evidence_ids: Sequence[UUID]) -> None:
        for evidence_id in evidence_ids:
            if await self.evidence_repo.get_for_user(evidence_id, user_id) is None:
                raise ValidationError(f"Evidence {evidence_id} not found")

    async def _prior_event_ids(self, user_id: UUID, journal_entry_id: UUID) -> List[UUID]:
        ids: List[UUID] = []

        latest = await self.job_repo.get_latest_for_entry(journal_entry_id, user_id)
        if latest and latest.result_summary:
            for value in latest.result_summary.get("event_ids") or []:
                try:
                    ids.append(UUID(str(value)))
                except ValueError:
                    LOGGER.warning(f"Ignoring malformed event id {value!r} in job {latest.id}")

        ids.extend(await self.event_repo.get_ids_for_entry(journal_entry_id, user_id))
        return list(dict.fromkeys(ids))

    async def _resolve_timezone(self, user_id: UUID, requested: Optional[str]) -> str:
        if requested and is_valid_timezone(requested):
            return requested
        profile_timezone = await self.profile_repo.get_timezone(user_id)
        if profile_timezone and is_valid_timezone(profile_timezone):
            return profile_timezone
        return settings.extraction.default_timezone

    async def _start_extraction(
        self,
        job: Job,
        entry: JournalEntry,
        user_id: UUID,
        event_text: str,
        timezone: str,
        evidence_ids: Sequence[UUID],
    ) -> None:
        workflow_id = workflow_id_for_job(str(job.id))
        request = JournalExtractionRequest(
            job_id=str(job.id),
            journal_entry_id=str(entry.id),
            user_id=str(user_id),
            event_text=event_text,
            reference_date=entry.reference_date.isoformat() if entry.reference_date else None,
            timezone=timezone,
            evidence_ids=[str(evidence_id) for evidence_id in evidence_ids],
        )

        try:
            temporal_client = await self.temporal_client_factory()
            await temporal_client.start_workflow(
                JournalExtractionWorkflow.run,
                request,
                id=workflow_id,
                task_queue=settings.temporal_task_queue,
            )
            LOGGER.info(f"Started workflow {workflow_id} for journal entry {entry.id}")
        except WorkflowAlreadyStartedError:
            LOGGER.info(f"Temporal workflow {workflow_id} already running")
        except Exception as e:
            LOGGER.error(f"Failed to start workflow {workflow_id}: {e}", exc_info=True)
            await JobService(self.session).mark_failed(
                job.id, entry.id, f"Failed to start extraction: {e}"
            )
            raise APIClientError("Failed to start journal extraction", e) from e

    @staticmethod
    def _submit_response(job: Job, deduplicated: bool = False) -> JournalSubmitResponse:
        return JournalSubmitResponse(
            journal_entry_id=job.journal_entry_id,
            job_id=job.id,
            workflow_id=workflow_id_for_job(str(job.id)),
            status=job.status,
            deduplicated=deduplicated,
        )
