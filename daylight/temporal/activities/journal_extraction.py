"""Activities for the journal extraction workflow.

Each activity opens its own session, does one phase of work and commits.
Application errors propagate so Temporal can apply the retry policy; error
types listed in ``NON_RETRYABLE_ERROR_TYPES`` fail the workflow immediately.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from temporalio import activity

from daylight.core.database import async_session_maker
from daylight.schemas.extraction import EvidenceSummary, ExtractionPayload
from daylight.services.extraction.context_builder import ExtractionContextBuilder
from daylight.services.extraction.event_extractor import EventExtractor
from daylight.services.extraction.event_persistence import EventPersistenceService
from daylight.services.job_service import JobService


@activity.defn
async def mark_processing(job_id: str, journal_entry_id: str) -> None:
    activity.logger.info(
        f"[mark_processing] job {job_id}",
        extra={"job_id": job_id, "journal_entry_id": journal_entry_id}
    )
    async with async_session_maker() as session:
        await JobService(session).mark_processing(UUID(job_id), UUID(journal_entry_id))


@activity.defn
async def load_evidence_summary(evidence_id: str, user_id: str) -> Optional[Dict[str, Any]]:
    """Summary for one evidence item, or None if it is missing."""
    async with async_session_maker() as session:
        summary = await ExtractionContextBuilder(session).load_evidence_summary(
            UUID(evidence_id), UUID(user_id)
        )
    return summary.model_dump() if summary else None


@activity.defn
async def extract_journal_events(
    user_id: str,
    event_text: str,
    reference_date: Optional[str],
    timezone: Optional[str],
    evidence_summaries: List[Dict[str, Any]],
) -> Dict[str, Any]:
    activity.logger.info(
        f"[extract_journal_events] user {user_id}, {len(evidence_summaries)} evidence summaries",
        extra={"user_id": user_id, "attempt": activity.info().attempt}
    )
    evidence = [EvidenceSummary(**item) for item in evidence_summaries]
    # The session is closed before the model call, which can run for minutes.
    async with async_session_maker() as session:
        context = await ExtractionContextBuilder(session).build(
            user_id=UUID(user_id),
            reference_date=reference_date,
            timezone=timezone,
            evidence=evidence,
        )
    payload = await EventExtractor().extract(
        user_id=UUID(user_id),
        event_text=event_text,
        reference_date=reference_date,
        timezone=timezone,
        evidence=evidence,
        context=context,
    )
    return payload.model_dump(mode="json")


@activity.defn
async def save_journal_events(
    user_id: str,
    journal_entry_id: str,
    job_id: str,
    extraction: Dict[str, Any],
    evidence_ids: List[str],
    timezone: str,
) -> Dict[str, Any]:
    """Persist the extraction and return the job's result summary."""
    payload = ExtractionPayload.model_validate(extraction)
    async with async_session_maker() as session:
        report = await EventPersistenceService(session).save(
            user_id=UUID(user_id),
            journal_entry_id=UUID(journal_entry_id),
            job_id=UUID(job_id),
            extraction=payload,
            evidence_ids=[UUID(evidence_id) for evidence_id in evidence_ids],
            timezone=timezone,
        )
    summary = report.to_summary()
    activity.logger.info(
        f"[save_journal_events] {summary['events_created']} events saved for entry {journal_entry_id}",
        extra={"degraded": summary["degraded"]}
    )
    return summary


@activity.defn
async def finalize_journal_extraction(
    job_id: str,
    journal_entry_id: str,
    extraction: Dict[str, Any],
    result_summary: Dict[str, Any],
) -> None:
    async with async_session_maker() as session:
        await JobService(session).finalize(
            UUID(job_id), UUID(journal_entry_id), extraction, result_summary
        )


@activity.defn
async def mark_extraction_failed(job_id: str, journal_entry_id: Optional[str], error_message: str) -> None:
    """Failure hook: job to ``failed`` and entry to ``cancelled``."""
    activity.logger.warning(
        f"[mark_extraction_failed] job {job_id}: {error_message}",
        extra={"job_id": job_id, "journal_entry_id": journal_entry_id}
    )
    async with async_session_maker() as session:
        await JobService(session).mark_failed(
            UUID(job_id),
            UUID(journal_entry_id) if journal_entry_id else None,
            error_message,
        )


JOURNAL_EXTRACTION_ACTIVITIES = [
    mark_processing,
    load_evidence_summary,
    extract_journal_events,
    save_journal_events,
    finalize_journal_extraction,
    mark_extraction_failed,
]
