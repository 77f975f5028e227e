import uuid
from typing import Iterable, List, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from daylight.database.models import (
    ActionItem,
    Event,
    EventEvidence,
    EventParticipant,
    EvidenceMention,
)
from daylight.repositories.base_repository import BaseRepository


class EventRepository(BaseRepository[Event]):
    """Repository for timeline events and the rows that hang off them."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Event)

    async def add_rows(self, rows: Sequence[object]) -> None:
        """Insert a batch of already-constructed model instances."""
        if not rows:
            return
        try:
            self.session.add_all(list(rows))
            await self.session.flush()
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error inserting {len(rows)} {type(rows[0]).__name__} rows: {str(e)}",
                exc_info=True
            )
            raise

    async def get_ids_for_job(self, job_id: uuid.UUID, user_id: uuid.UUID) -> List[uuid.UUID]:
        query = select(Event.id).where(Event.job_id == job_id, Event.user_id == user_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_ids_for_entry(
        self, journal_entry_id: uuid.UUID, user_id: uuid.UUID
    ) -> List[uuid.UUID]:
        query = select(Event.id).where(
            Event.journal_entry_id == journal_entry_id, Event.user_id == user_id
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_for_entry(
        self, journal_entry_id: uuid.UUID, user_id: uuid.UUID
    ) -> List[Event]:
        query = (
            select(Event)
            .where(Event.journal_entry_id == journal_entry_id, Event.user_id == user_id)
            .order_by(Event.primary_timestamp.asc().nulls_last(), Event.created_at.asc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def delete_with_dependents(
        self, event_ids: Iterable[uuid.UUID], user_id: uuid.UUID
    ) -> int:
        """Delete events and every row that references them.

        Dependents are removed explicitly rather than relying on FK cascades so
        no participant, mention, link or action item can outlive its event.

        Returns:
            Number of events deleted
        """
        ids = list(dict.fromkeys(event_ids))
        if not ids:
            return 0

        owned_ids = select(Event.id).where(Event.id.in_(ids), Event.user_id == user_id)
        try:
            for model in (EventParticipant, EvidenceMention, EventEvidence, ActionItem):
                await self.session.execute(delete(model).where(model.event_id.in_(owned_ids)))

            result = await self.session.execute(
                delete(Event).where(Event.id.in_(ids), Event.user_id == user_id)
            )
            return result.rowcount or 0
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error deleting {len(ids)} events for user {user_id}: {str(e)}",
                exc_info=True
            )
            raise
