"""Writes an extraction result to the events tables.

All rows for one save go into a single transaction that holds the journal
entry's advisory lock. Events are all-or-nothing. The dependent rows
(participants, evidence mentions, evidence links, action items) each run in
their own SAVEPOINT so one failing batch is reported instead of aborting the
whole save.
"""

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from daylight.core.exceptions import DatabaseError
from daylight.database.enums import ActionItemStatus, ParticipantRole
from daylight.database.models import (
    ActionItem,
    Event,
    EventEvidence,
    EventParticipant,
    EvidenceMention,
)
from daylight.repositories.event_repository import EventRepository
from daylight.repositories.journal_repository import JournalEntryRepository
from daylight.schemas.extraction import ExtractedEvent, ExtractionPayload
from daylight.services.base_service import BaseService
from daylight.services.extraction.legacy_mapping import (
    UNKNOWN_WELFARE,
    map_new_to_legacy_type,
    map_new_to_legacy_welfare,
)
from daylight.utils.logging import get_logger
from daylight.utils.timezone import parse_iso_timestamp, reinterpret_timestamp_in_timezone

LOGGER = get_logger(__name__)

SUB_WRITE_PARTICIPANTS = "participants"
SUB_WRITE_EVIDENCE_MENTIONS = "evidence_mentions"
SUB_WRITE_EVENT_EVIDENCE = "event_evidence"
SUB_WRITE_JOURNAL_EVIDENCE = "journal_entry_evidence"
SUB_WRITE_ACTION_ITEMS = "action_items"


class SubWriteResult(BaseModel):
    ok: bool
    rows: int = 0
    error: Optional[str] = None


class PersistenceReport(BaseModel):
    """Outcome of one save, stored as the job's ``result_summary``."""

    events_created: int = 0
    evidence_processed: int = 0
    action_items_created: int = 0
    event_ids: List[str] = Field(default_factory=list)
    sub_writes: Dict[str, SubWriteResult] = Field(default_factory=dict)

    @property
    def degraded(self) -> bool:
        return any(not result.ok for result in self.sub_writes.values())

    def to_summary(self) -> Dict[str, Any]:
        summary = self.model_dump(mode="json")
        summary["degraded"] = self.degraded
        return summary


@dataclass
class EventRow:
    """Column values for one ``events`` row built from an extracted event.

    The legacy ``type`` and ``welfare_impact`` values are derived here and
    nowhere else.
    """

    id: uuid.UUID
    user_id: uuid.UUID
    journal_entry_id: Optional[uuid.UUID]
    job_id: Optional[uuid.UUID]
    type_v2: str
    type: str
    title: str
    description: Optional[str]
    primary_timestamp: Optional[datetime]
    timestamp_precision: str
    duration_minutes: Optional[int]
    location: Optional[str]
    child_involved: bool
    agreement_violation: Optional[bool]
    safety_concern: Optional[bool]
    welfare_category: Optional[str]
    welfare_direction: Optional[str]
    welfare_severity: Optional[str]
    welfare_impact: str
    child_statements: List[Dict[str, Any]] = field(default_factory=list)
    coparent_interaction: Optional[Dict[str, Any]] = None
    patterns_noted_v2: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_extracted(
        cls,
        event: ExtractedEvent,
        user_id: uuid.UUID,
        journal_entry_id: Optional[uuid.UUID],
        job_id: Optional[uuid.UUID],
        timezone: str,
    ) -> "EventRow":
        relevance = event.custody_relevance
        welfare = relevance.welfare_impact if relevance else None

        corrected = reinterpret_timestamp_in_timezone(event.primary_timestamp, timezone)
        primary_timestamp = parse_iso_timestamp(corrected, timezone)
        if corrected and primary_timestamp is None:
            LOGGER.warning(f"Dropping unparseable primary_timestamp {corrected!r}")

        return cls(
            id=uuid.uuid4(),
            user_id=user_id,
            journal_entry_id=journal_entry_id,
            job_id=job_id,
            type_v2=event.type,
            type=map_new_to_legacy_type(event.type),
            title=event.title or "Untitled event",
            description=event.description,
            primary_timestamp=primary_timestamp,
            timestamp_precision=event.timestamp_precision or "unknown",
            duration_minutes=round(event.duration_minutes) if event.duration_minutes is not None else None,
            location=event.location,
            child_involved=bool(event.child_involved),
            agreement_violation=relevance.agreement_violation if relevance else None,
            safety_concern=relevance.safety_concern if relevance else None,
            welfare_category=welfare.category if welfare else None,
            welfare_direction=welfare.direction if welfare else None,
            welfare_severity=welfare.severity if welfare else None,
            welfare_impact=map_new_to_legacy_welfare(welfare) or UNKNOWN_WELFARE,
            child_statements=[s.model_dump() for s in event.child_statements],
            coparent_interaction=(
                event.coparent_interaction.model_dump() if event.coparent_interaction else None
            ),
            patterns_noted_v2=[p.model_dump() for p in event.patterns_noted],
        )

    def to_model(self) -> Event:
        return Event(**asdict(self))


def participant_rows(event: ExtractedEvent, event_id: uuid.UUID, user_id: uuid.UUID) -> List[EventParticipant]:
    groups = (
        (ParticipantRole.PRIMARY, event.participants.primary),
        (ParticipantRole.WITNESS, event.participants.witnesses),
        (ParticipantRole.PROFESSIONAL, event.participants.professionals),
    )
    return [
        EventParticipant(user_id=user_id, event_id=event_id, role=role.value, label=label)
        for role, labels in groups
        for label in labels
        if label and label.strip()
    ]


def evidence_mention_rows(event: ExtractedEvent, event_id: uuid.UUID, user_id: uuid.UUID) -> List[EvidenceMention]:
    return [
        EvidenceMention(
            user_id=user_id,
            event_id=event_id,
            type=mention.type,
            description=mention.description,
            status=mention.status,
        )
        for mention in event.evidence_mentioned
        if mention.description and mention.description.strip()
    ]


class EventPersistenceService(BaseService):
    """Persists one extraction result for a journal entry."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.event_repo = EventRepository(session)
        self.journal_repo = JournalEntryRepository(session)
        super().__init__(self.event_repo)

    async def save(
        self,
        user_id: uuid.UUID,
        journal_entry_id: uuid.UUID,
        job_id: Optional[uuid.UUID],
        extraction: ExtractionPayload,
        evidence_ids: Sequence[uuid.UUID] = (),
        timezone: str = "UTC",
    ) -> PersistenceReport:
        return await self.execute(
            user_id=user_id,
            journal_entry_id=journal_entry_id,
            job_id=job_id,
            extraction=extraction,
            evidence_ids=list(evidence_ids),
            timezone=timezone,
        )

    async def run(
        self,
        user_id: uuid.UUID,
        journal_entry_id: uuid.UUID,
        job_id: Optional[uuid.UUID],
        extraction: ExtractionPayload,
        evidence_ids: List[uuid.UUID],
        timezone: str,
    ) -> PersistenceReport:
        events = extraction.events
        report = PersistenceReport(evidence_processed=len(evidence_ids))

        if not events:
            LOGGER.info(f"No events extracted for journal entry {journal_entry_id}; nothing to save")
            return report

        rows = [
            EventRow.from_extracted(event, user_id, journal_entry_id, job_id, timezone)
            for event in events
        ]
        event_ids = [row.id for row in rows]

        try:
            await self.journal_repo.lock_entry(journal_entry_id)

            if job_id is not None:
                previous = await self.event_repo.get_ids_for_job(job_id, user_id)
                if previous:
                    deleted = await self.event_repo.delete_with_dependents(previous, user_id)
                    LOGGER.info(
                        f"Removed {deleted} events left by an earlier attempt of job {job_id}"
                    )

            await self.event_repo.add_rows([row.to_model() for row in rows])
        except SQLAlchemyError as e:
            await self.session.rollback()
            LOGGER.error(f"Failed to insert events for journal entry {journal_entry_id}: {e}", exc_info=True)
            raise DatabaseError("Failed to save events.", e) from e

        report.events_created = len(event_ids)
        report.event_ids = [str(event_id) for event_id in event_ids]

        await self._sub_write(report, SUB_WRITE_PARTICIPANTS, lambda: self._insert([
            row
            for event, event_id in zip(events, event_ids)
            for row in participant_rows(event, event_id, user_id)
        ]))
        await self._sub_write(report, SUB_WRITE_EVIDENCE_MENTIONS, lambda: self._insert([
            row
            for event, event_id in zip(events, event_ids)
            for row in evidence_mention_rows(event, event_id, user_id)
        ]))

        if evidence_ids and len(event_ids) == 1:
            await self._sub_write(report, SUB_WRITE_EVENT_EVIDENCE, lambda: self._insert([
                EventEvidence(event_id=event_ids[0], evidence_id=evidence_id, is_primary=index == 0)
                for index, evidence_id in enumerate(evidence_ids)
            ]))
        elif evidence_ids:
            LOGGER.info(
                f"Skipping auto-linking {len(evidence_ids)} evidence item(s) to "
                f"{len(event_ids)} events to avoid over-linking"
            )

        if evidence_ids:
            await self._sub_write(report, SUB_WRITE_JOURNAL_EVIDENCE, lambda: self._link_entry_evidence(
                journal_entry_id, evidence_ids
            ))

        if extraction.action_items:
            action_rows = [
                ActionItem(
                    user_id=user_id,
                    event_id=event_ids[0],
                    priority=item.priority,
                    type=item.type,
                    description=item.description,
                    deadline=item.deadline,
                    status=ActionItemStatus.OPEN.value,
                )
                for item in extraction.action_items
            ]
            result = await self._sub_write(report, SUB_WRITE_ACTION_ITEMS, lambda: self._insert(action_rows))
            report.action_items_created = result.rows

        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError("Failed to commit extracted events.", e) from e

        if report.degraded:
            LOGGER.warning(
                f"Saved events for journal entry {journal_entry_id} with failed sub-writes",
                extra={"sub_writes": {k: v.model_dump() for k, v in report.sub_writes.items()}}
            )
        else:
            LOGGER.info(
                f"Saved {report.events_created} events for journal entry {journal_entry_id}",
                extra={"job_id": str(job_id) if job_id else None}
            )
        return report

    async def _insert(self, rows: Sequence[object]) -> int:
        await self.event_repo.add_rows(rows)
        return len(rows)

    async def _link_entry_evidence(
        self, journal_entry_id: uuid.UUID, evidence_ids: Sequence[uuid.UUID]
    ) -> int:
        created = await self.journal_repo.add_evidence_links(
            journal_entry_id, evidence_ids, mark_processed=True
        )
        return len(created)

    async def _sub_write(
        self,
        report: PersistenceReport,
        name: str,
        write: Callable[[], Awaitable[int]],
    ) -> SubWriteResult:
        try:
            async with self.session.begin_nested():
                rows = await write()
            result = SubWriteResult(ok=True, rows=rows)
        except SQLAlchemyError as e:
            LOGGER.error(f"Failed to insert {name}: {e}", exc_info=True)
            result = SubWriteResult(ok=False, error=str(e))
        report.sub_writes[name] = result
        return result
