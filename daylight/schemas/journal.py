"""Request and response models for the journal and jobs endpoints."""

from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class JournalSubmitRequest(BaseModel):
    """Body for creating a journal entry and queueing extraction."""

    event_text: str = Field(..., min_length=1, description="Narrative to extract events from")
    reference_date: Optional[date] = Field(
        None, description="Calendar day the narrative is relative to, in the user's timezone"
    )
    reference_time_description: Optional[str] = Field(
        None, description="Free-text description of when the events happened"
    )
    timezone: Optional[str] = Field(
        None, description="IANA timezone; falls back to the profile timezone"
    )
    evidence_ids: List[UUID] = Field(default_factory=list, description="Evidence to attach")


class JobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: str
    status: str
    journal_entry_id: Optional[UUID] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None
    result_summary: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None


class JournalEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_text: Optional[str] = None
    reference_date: Optional[date] = None
    reference_time_description: Optional[str] = None
    status: str
    processing_error: Optional[str] = None
    processed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class JournalSubmitResponse(BaseModel):
    """Returned when extraction has been queued."""

    journal_entry_id: UUID
    job_id: UUID
    workflow_id: str
    status: str
    deduplicated: bool = Field(False, description="True when an earlier request with the same key is returned")


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    journal_entry_id: Optional[UUID] = None
    job_id: Optional[UUID] = None
    type: str
    type_v2: Optional[str] = None
    title: str
    description: Optional[str] = None
    primary_timestamp: Optional[datetime] = None
    timestamp_precision: str
    duration_minutes: Optional[int] = None
    location: Optional[str] = None
    child_involved: bool
    agreement_violation: Optional[bool] = None
    safety_concern: Optional[bool] = None
    welfare_impact: str
    welfare_category: Optional[str] = None
    welfare_direction: Optional[str] = None
    welfare_severity: Optional[str] = None
    child_statements: List[Dict[str, Any]] = Field(default_factory=list)
    coparent_interaction: Optional[Dict[str, Any]] = None
    patterns_noted_v2: List[Dict[str, Any]] = Field(default_factory=list)


class EventListResponse(BaseModel):
    total: int
    events: List[EventResponse]
