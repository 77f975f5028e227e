"""Job and journal entry status transitions for the extraction pipeline.

Job statuses move ``pending -> processing -> completed | failed``. A job
may also fail straight from ``pending``. Repeating the current status is
accepted as a no-op so redelivered activities stay harmless.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from daylight.core.exceptions import DatabaseError, NotFoundError, ValidationError
from daylight.database.enums import JobStatus, JournalEntryStatus
from daylight.database.models import Job
from daylight.repositories.job_repository import JobRepository
from daylight.repositories.journal_repository import JournalEntryRepository
from daylight.utils.logging import get_logger

LOGGER = get_logger(__name__)

ALLOWED_JOB_TRANSITIONS = {
    JobStatus.PENDING: {JobStatus.PROCESSING, JobStatus.FAILED},
    JobStatus.PROCESSING: {JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}


def validate_job_transition(
    current: Union[str, JobStatus], target: Union[str, JobStatus]
) -> bool:
    """Check a job status change.

    Returns:
        True if the job must be updated, False if it is already in ``target``

    Raises:
        ValidationError: If the transition is not allowed
    """
    current_status = JobStatus(current)
    target_status = JobStatus(target)
    if current_status == target_status:
        return False
    if target_status not in ALLOWED_JOB_TRANSITIONS[current_status]:
        raise ValidationError(
            f"Illegal job transition {current_status.value} -> {target_status.value}"
        )
    return True


class JobService:
    """Applies pipeline status changes to a job and its journal entry."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.job_repo = JobRepository(session)
        self.journal_repo = JournalEntryRepository(session)

    async def _get_job(self, job_id: UUID) -> Job:
        job = await self.job_repo.get_by_id(job_id)
        if job is None:
            raise NotFoundError(f"Job {job_id} not found")
        return job

    async def _commit(self, action: str, job_id: UUID) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            LOGGER.error(f"Failed to {action} job {job_id}: {e}", exc_info=True)
            raise DatabaseError(f"Failed to {action} job {job_id}", e) from e

    async def mark_processing(self, job_id: UUID, journal_entry_id: UUID) -> None:
        job = await self._get_job(job_id)
        now = datetime.now(timezone.utc)

        if validate_job_transition(job.status, JobStatus.PROCESSING):
            await self.job_repo.update(job_id, status=JobStatus.PROCESSING.value, started_at=now)

        await self.journal_repo.update_status(
            journal_entry_id, JournalEntryStatus.PROCESSING.value, processed_at=now
        )
        await self._commit("mark processing", job_id)
        LOGGER.info(f"Job {job_id} processing", extra={"journal_entry_id": str(journal_entry_id)})

    async def finalize(
        self,
        job_id: UUID,
        journal_entry_id: UUID,
        extraction_raw: Dict[str, Any],
        result_summary: Dict[str, Any],
    ) -> None:
        """Complete the entry and job, recording the raw extraction and report."""
        job = await self._get_job(job_id)
        now = datetime.now(timezone.utc)

        await self.journal_repo.update_status(
            journal_entry_id,
            JournalEntryStatus.COMPLETED.value,
            extraction_raw=extraction_raw,
            completed_at=now,
        )
        if validate_job_transition(job.status, JobStatus.COMPLETED):
            await self.job_repo.update(
                job_id,
                status=JobStatus.COMPLETED.value,
                completed_at=now,
                result_summary=result_summary,
            )
        await self._commit("finalize", job_id)
        LOGGER.info(
            f"Job {job_id} completed",
            extra={"degraded": bool(result_summary.get("degraded"))}
        )

    async def mark_failed(
        self, job_id: UUID, journal_entry_id: Optional[UUID], error_message: str
    ) -> None:
        """Fail the job and cancel its entry with the error recorded on both."""
        job = await self._get_job(job_id)

        if validate_job_transition(job.status, JobStatus.FAILED):
            await self.job_repo.update(job_id, status=JobStatus.FAILED.value, error_message=error_message)

        if journal_entry_id is not None:
            await self.journal_repo.update_status(
                journal_entry_id,
                JournalEntryStatus.CANCELLED.value,
                processing_error=error_message,
            )
        await self._commit("mark failed", job_id)
        LOGGER.warning(f"Job {job_id} failed: {error_message}")
