"""Journal extraction workflow.

Runs the extraction pipeline for one job, calling activities by string name
so no database or HTTP modules are imported into the workflow sandbox:

1. mark_processing
2. load_evidence_summary (once per attached evidence id)
3. extract_journal_events
4. save_journal_events
5. finalize_journal_extraction

If any phase fails after its retries, mark_extraction_failed records the
error on the job and entry before the failure is re-raised.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, List, Optional

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from daylight.config import settings
    from daylight.core.exceptions import NON_RETRYABLE_ERROR_TYPES
    from daylight.temporal.constants import (
        ACTIVITY_EXTRACT_EVENTS,
        ACTIVITY_FINALIZE,
        ACTIVITY_LOAD_EVIDENCE_SUMMARY,
        ACTIVITY_MARK_FAILED,
        ACTIVITY_MARK_PROCESSING,
        ACTIVITY_SAVE_EVENTS,
        DB_ACTIVITY_TIMEOUT_SECONDS,
        SAVE_ACTIVITY_TIMEOUT_SECONDS,
    )


@dataclass
class JournalExtractionRequest:
    """Input for one extraction run (``journal/extraction.requested``)."""

    job_id: str
    journal_entry_id: str
    user_id: str
    event_text: str
    reference_date: Optional[str] = None
    timezone: str = "UTC"
    evidence_ids: List[str] = field(default_factory=list)


def _failure_message(error: BaseException) -> str:
    """Innermost cause message, so activity wrappers don't hide the real error."""
    current = error
    while getattr(current, "cause", None) is not None:
        current = current.cause
    return str(current) or error.__class__.__name__


@workflow.defn
class JournalExtractionWorkflow:
    """Extracts timeline events from one journal entry."""

    def __init__(self):
        self._status = "initialized"
        self._current_phase: Optional[str] = None
        self._progress = 0.0
        self._events_created: Optional[int] = None

    @workflow.query
    def get_status(self) -> dict:
        """Query handler for real-time status updates."""
        return {
            "status": self._status,
            "current_phase": self._current_phase,
            "progress": self._progress,
            "events_created": self._events_created,
        }

    @workflow.run
    async def run(self, request: JournalExtractionRequest) -> dict:
        workflow.logger.info(
            f"Starting journal extraction for job {request.job_id} "
            f"(entry {request.journal_entry_id}, {len(request.evidence_ids)} evidence items)"
        )
        self._status = "processing"

        retry_policy = RetryPolicy(
            maximum_attempts=settings.extraction.max_attempts,
            initial_interval=timedelta(seconds=5),
            maximum_interval=timedelta(seconds=60),
            backoff_coefficient=2.0,
            non_retryable_error_types=NON_RETRYABLE_ERROR_TYPES,
        )
        db_timeout = timedelta(seconds=DB_ACTIVITY_TIMEOUT_SECONDS)

        try:
            self._current_phase = "mark_processing"
            self._progress = 0.05
            await workflow.execute_activity(
                ACTIVITY_MARK_PROCESSING,
                args=[request.job_id, request.journal_entry_id],
                start_to_close_timeout=db_timeout,
                retry_policy=retry_policy,
            )

            self._current_phase = "load_evidence"
            self._progress = 0.1
            evidence_summaries: List[Dict[str, Any]] = []
            for evidence_id in request.evidence_ids:
                summary = await workflow.execute_activity(
                    ACTIVITY_LOAD_EVIDENCE_SUMMARY,
                    args=[evidence_id, request.user_id],
                    start_to_close_timeout=db_timeout,
                    retry_policy=retry_policy,
                )
                if summary:
                    evidence_summaries.append(summary)

            self._current_phase = "extract_events"
            self._progress = 0.2
            extraction = await workflow.execute_activity(
                ACTIVITY_EXTRACT_EVENTS,
                args=[
                    request.user_id,
                    request.event_text,
                    request.reference_date,
                    request.timezone,
                    evidence_summaries,
                ],
                start_to_close_timeout=timedelta(minutes=settings.extraction.llm_step_timeout_minutes),
                retry_policy=retry_policy,
            )

            self._current_phase = "save_events"
            self._progress = 0.8
            report = await workflow.execute_activity(
                ACTIVITY_SAVE_EVENTS,
                args=[
                    request.user_id,
                    request.journal_entry_id,
                    request.job_id,
                    extraction,
                    request.evidence_ids,
                    request.timezone,
                ],
                start_to_close_timeout=timedelta(seconds=SAVE_ACTIVITY_TIMEOUT_SECONDS),
                retry_policy=retry_policy,
            )
            self._events_created = report.get("events_created", 0)

            self._current_phase = "finalize"
            self._progress = 0.95
            await workflow.execute_activity(
                ACTIVITY_FINALIZE,
                args=[request.job_id, request.journal_entry_id, extraction, report],
                start_to_close_timeout=db_timeout,
                retry_policy=retry_policy,
            )

        except Exception as e:
            message = _failure_message(e)
            workflow.logger.error(
                f"Journal extraction failed for job {request.job_id} "
                f"during {self._current_phase}: {message}"
            )
            self._status = "failed"
            await workflow.execute_activity(
                ACTIVITY_MARK_FAILED,
                args=[request.job_id, request.journal_entry_id, message],
                start_to_close_timeout=db_timeout,
                retry_policy=RetryPolicy(maximum_attempts=5),
            )
            raise

        self._status = "completed"
        self._current_phase = None
        self._progress = 1.0
        workflow.logger.info(
            f"Journal extraction complete for job {request.job_id}: "
            f"{report.get('events_created', 0)} events"
            + (" (degraded)" if report.get("degraded") else "")
        )
        return report
