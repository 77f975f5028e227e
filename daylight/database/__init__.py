"""Database models."""

from daylight.database.models import (
    ActionItem,
    Case,
    Event,
    EventEvidence,
    EventParticipant,
    Evidence,
    EvidenceMention,
    Job,
    JournalEntry,
    JournalEntryEvidence,
    Profile,
)

__all__ = [
    "ActionItem",
    "Case",
    "Event",
    "EventEvidence",
    "EventParticipant",
    "Evidence",
    "EvidenceMention",
    "Job",
    "JournalEntry",
    "JournalEntryEvidence",
    "Profile",
]
