import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from daylight.database.models import JournalEntry, JournalEntryEvidence
from daylight.repositories.base_repository import BaseRepository


class JournalEntryRepository(BaseRepository[JournalEntry]):
    """Repository for journal entries and their evidence attachments."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, JournalEntry)

    async def lock_entry(self, journal_entry_id: uuid.UUID) -> None:
        """Take a transaction-scoped advisory lock on a journal entry.

        Serializes redo requests and event writes for the same entry. The lock
        is released when the surrounding transaction commits or rolls back.
        """
        await self.session.execute(
            text("SELECT pg_advisory_xact_lock(hashtextextended(:key, 0))"),
            {"key": f"journal_entry:{journal_entry_id}"},
        )

    async def update_status(
        self,
        journal_entry_id: uuid.UUID,
        status: str,
        **fields,
    ) -> Optional[JournalEntry]:
        """Set an entry's status along with any extra columns.

        Args:
            journal_entry_id: Entry to update
            status: New JournalEntryStatus value
            **fields: Additional columns (processing_error, completed_at, ...)

        Returns:
            Updated entry, or None if it does not exist
        """
        return await self.update(journal_entry_id, status=status, **fields)

    async def get_evidence_links(
        self, journal_entry_id: uuid.UUID
    ) -> Dict[uuid.UUID, int]:
        """Map evidence id to sort order for evidence already on the entry."""
        query = select(
            JournalEntryEvidence.evidence_id, JournalEntryEvidence.sort_order
        ).where(JournalEntryEvidence.journal_entry_id == journal_entry_id)
        result = await self.session.execute(query)
        return {row.evidence_id: row.sort_order for row in result.all()}

    async def list_evidence_ids(self, journal_entry_id: uuid.UUID) -> List[uuid.UUID]:
        """Evidence ids linked to an entry, in display order."""
        query = (
            select(JournalEntryEvidence.evidence_id)
            .where(JournalEntryEvidence.journal_entry_id == journal_entry_id)
            .order_by(JournalEntryEvidence.sort_order)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def add_evidence_links(
        self,
        journal_entry_id: uuid.UUID,
        evidence_ids: Sequence[uuid.UUID],
        mark_processed: bool = False,
    ) -> List[JournalEntryEvidence]:
        """Attach evidence to an entry, skipping ids that are already linked.

        New links continue the entry's existing sort order.

        Returns:
            The links that were created
        """
        existing = await self.get_evidence_links(journal_entry_id)
        max_sort_order = max(existing.values(), default=-1)
        now = datetime.now(timezone.utc)

        created = []
        for evidence_id in evidence_ids:
            if evidence_id in existing:
                continue
            max_sort_order += 1
            link = JournalEntryEvidence(
                journal_entry_id=journal_entry_id,
                evidence_id=evidence_id,
                sort_order=max_sort_order,
                is_processed=mark_processed,
                processed_at=now if mark_processed else None,
            )
            existing[evidence_id] = max_sort_order
            created.append(link)

        if created:
            self.session.add_all(created)
            await self.session.flush()
        return created

