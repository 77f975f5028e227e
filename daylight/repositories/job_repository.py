import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from daylight.database.enums import JobStatus, JobType
from daylight.database.models import Job
from daylight.repositories.base_repository import BaseRepository


class JobRepository(BaseRepository[Job]):
    """Repository for background job records."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Job)

    async def create_job(
        self,
        user_id: uuid.UUID,
        journal_entry_id: Optional[uuid.UUID],
        job_type: JobType = JobType.JOURNAL_EXTRACTION,
        idempotency_key: Optional[str] = None,
    ) -> Job:
        """Create a pending job record.

        Args:
            user_id: Owner of the job
            journal_entry_id: Entry the job extracts from
            job_type: Kind of background work
            idempotency_key: Optional caller-supplied key, unique per user

        Returns:
            Created Job instance
        """
        return await self.create(
            id=uuid.uuid4(),
            user_id=user_id,
            type=job_type.value,
            status=JobStatus.PENDING.value,
            journal_entry_id=journal_entry_id,
            idempotency_key=idempotency_key,
        )

    async def get_by_idempotency_key(
        self, user_id: uuid.UUID, idempotency_key: str
    ) -> Optional[Job]:
        query = select(Job).where(
            Job.user_id == user_id,
            Job.idempotency_key == idempotency_key,
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_latest_for_entry(
        self, journal_entry_id: uuid.UUID, user_id: uuid.UUID
    ) -> Optional[Job]:
        """Most recent job of any status for a journal entry."""
        query = (
            select(Job)
            .where(Job.journal_entry_id == journal_entry_id, Job.user_id == user_id)
            .order_by(Job.created_at.desc())
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_active_for_entry(
        self, journal_entry_id: uuid.UUID, user_id: uuid.UUID
    ) -> Optional[Job]:
        """A pending or processing job for the entry, if one exists."""
        query = (
            select(Job)
            .where(
                Job.journal_entry_id == journal_entry_id,
                Job.user_id == user_id,
                Job.status.in_([JobStatus.PENDING.value, JobStatus.PROCESSING.value]),
            )
            .order_by(Job.created_at.desc())
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()
