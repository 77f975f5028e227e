"""SQLAlchemy models for all database tables."""

import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    Integer,
    String,
    Text,
    TIMESTAMP,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from daylight.core.database import Base


class Profile(Base):
    """User profile keyed by the auth provider's user id."""

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    full_name: Mapped[str | None] = mapped_column(String, nullable=True)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    timezone: Mapped[str] = mapped_column(String, nullable=False, default="UTC", server_default="UTC")
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )


class Case(Base):
    """Custody case facts used to build the extraction prompt."""

    __tablename__ = "cases"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    title: Mapped[str | None] = mapped_column(String, nullable=True)
    case_number: Mapped[str | None] = mapped_column(String, nullable=True)
    jurisdiction_state: Mapped[str | None] = mapped_column(String, nullable=True)
    jurisdiction_county: Mapped[str | None] = mapped_column(String, nullable=True)
    court_name: Mapped[str | None] = mapped_column(String, nullable=True)
    case_type: Mapped[str | None] = mapped_column(String, nullable=True)
    stage: Mapped[str | None] = mapped_column(String, nullable=True)
    your_role: Mapped[str | None] = mapped_column(String, nullable=True)
    opposing_party_name: Mapped[str | None] = mapped_column(String, nullable=True)
    opposing_party_role: Mapped[str | None] = mapped_column(String, nullable=True)
    children_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    children_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    parenting_schedule: Mapped[str | None] = mapped_column(Text, nullable=True)
    goals_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    risk_flags: Mapped[list[str] | None] = mapped_column(ARRAY(String), nullable=True)
    next_court_date: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )


class JournalEntry(Base):
    """A user's narrative submission."""

    __tablename__ = "journal_entries"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    event_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    reference_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    reference_time_description: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default="draft"
    )  # draft | processing | review | completed | cancelled
    extraction_raw: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    processing_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )

    jobs: Mapped[list["Job"]] = relationship(
        "Job", back_populates="journal_entry", cascade="all, delete-orphan"
    )
    evidence_links: Mapped[list["JournalEntryEvidence"]] = relationship(
        "JournalEntryEvidence", back_populates="journal_entry", cascade="all, delete-orphan"
    )


class Evidence(Base):
    """An uploaded file with AI-derived summary; the file itself lives in object storage."""

    __tablename__ = "evidence"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    source_type: Mapped[str | None] = mapped_column(String, nullable=True)  # photo | screenshot | document
    storage_path: Mapped[str | None] = mapped_column(String, nullable=True)
    original_filename: Mapped[str | None] = mapped_column(String, nullable=True)
    mime_type: Mapped[str | None] = mapped_column(String, nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    tags: Mapped[list[str] | None] = mapped_column(ARRAY(String), nullable=True)
    user_annotation: Mapped[str | None] = mapped_column(Text, nullable=True)
    extraction_raw: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )


class JournalEntryEvidence(Base):
    """Evidence attached to a journal entry, in display order."""

    __tablename__ = "journal_entry_evidence"

    journal_entry_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("journal_entries.id", ondelete="CASCADE"), primary_key=True
    )
    evidence_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("evidence.id", ondelete="CASCADE"), primary_key=True
    )
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_processed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    processed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )

    journal_entry: Mapped["JournalEntry"] = relationship("JournalEntry", back_populates="evidence_links")


class Job(Base):
    """Queue record for one asynchronous extraction run."""

    __tablename__ = "jobs"
    __table_args__ = (
        UniqueConstraint("user_id", "idempotency_key", name="uq_jobs_user_idempotency_key"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)  # journal_extraction | evidence_processing
    status: Mapped[str] = mapped_column(
        String, nullable=False, default="pending"
    )  # pending | processing | completed | failed
    journal_entry_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("journal_entries.id", ondelete="CASCADE"), nullable=True
    )
    idempotency_key: Mapped[str | None] = mapped_column(String, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    result_summary: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )

    journal_entry: Mapped["JournalEntry | None"] = relationship("JournalEntry", back_populates="jobs")


class Event(Base):
    """One extracted incident on the user's timeline.

    ``type`` and ``welfare_impact`` hold the legacy enum values. They are
    always derived from ``type_v2`` and the welfare triple when a row is
    written, never edited on their own.
    """

    __tablename__ = "events"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    journal_entry_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("journal_entries.id", ondelete="SET NULL"), nullable=True, index=True
    )
    job_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("jobs.id", ondelete="SET NULL"), nullable=True, index=True
    )
    recording_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    type: Mapped[str] = mapped_column(
        String, nullable=False
    )  # incident | positive | medical | school | communication | legal
    type_v2: Mapped[str | None] = mapped_column(String, nullable=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    primary_timestamp: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    timestamp_precision: Mapped[str] = mapped_column(
        String, nullable=False, default="unknown"
    )  # exact | day | approximate | unknown
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    location: Mapped[str | None] = mapped_column(String, nullable=True)
    child_involved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    agreement_violation: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    safety_concern: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    welfare_impact: Mapped[str] = mapped_column(
        String, nullable=False, default="unknown"
    )  # none | minor | moderate | significant | positive | unknown
    welfare_category: Mapped[str | None] = mapped_column(String, nullable=True)
    welfare_direction: Mapped[str | None] = mapped_column(String, nullable=True)
    welfare_severity: Mapped[str | None] = mapped_column(String, nullable=True)
    child_statements: Mapped[list] = mapped_column(JSONB, nullable=False, default=list, server_default="[]")
    coparent_interaction: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    patterns_noted_v2: Mapped[list] = mapped_column(JSONB, nullable=False, default=list, server_default="[]")
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )

    participants: Mapped[list["EventParticipant"]] = relationship(
        "EventParticipant", back_populates="event", cascade="all, delete-orphan", passive_deletes=True
    )
    evidence_mentions: Mapped[list["EvidenceMention"]] = relationship(
        "EvidenceMention", back_populates="event", cascade="all, delete-orphan", passive_deletes=True
    )


class EventParticipant(Base):
    __tablename__ = "event_participants"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    event_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(String, nullable=False)  # primary | witness | professional
    label: Mapped[str] = mapped_column(String, nullable=False)

    event: Mapped["Event"] = relationship("Event", back_populates="participants")


class EvidenceMention(Base):
    """Evidence the narrative refers to, whether or not it was uploaded."""

    __tablename__ = "evidence_mentions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    event_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String, nullable=False)  # text | email | photo | document | recording | other
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False)  # have | need_to_get | need_to_create

    event: Mapped["Event"] = relationship("Event", back_populates="evidence_mentions")


class EventEvidence(Base):
    __tablename__ = "event_evidence"

    event_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), primary_key=True
    )
    evidence_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("evidence.id", ondelete="CASCADE"), primary_key=True
    )
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )


class ActionItem(Base):
    """Follow-up task suggested by an extraction."""

    __tablename__ = "action_items"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    event_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=True
    )
    priority: Mapped[str] = mapped_column(String, nullable=False)  # urgent | high | normal | low
    type: Mapped[str] = mapped_column(String, nullable=False)  # document | contact | file | obtain | other
    description: Mapped[str] = mapped_column(Text, nullable=False)
    deadline: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="open")
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )
