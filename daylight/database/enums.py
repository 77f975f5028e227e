"""Status and type enums shared by models, services and workflows."""

from enum import Enum


class JournalEntryStatus(str, Enum):
    """Lifecycle of a journal entry."""
    DRAFT = "draft"
    PROCESSING = "processing"
    REVIEW = "review"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class JobStatus(str, Enum):
    """Lifecycle of a background job record."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class JobType(str, Enum):
    """Kinds of background work tracked in the jobs table."""
    JOURNAL_EXTRACTION = "journal_extraction"
    EVIDENCE_PROCESSING = "evidence_processing"


class ParticipantRole(str, Enum):
    PRIMARY = "primary"
    WITNESS = "witness"
    PROFESSIONAL = "professional"


class ActionItemStatus(str, Enum):
    OPEN = "open"
    DONE = "done"
    DISMISSED = "dismissed"
