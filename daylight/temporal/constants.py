"""Shared constants for Temporal workflows."""

# Workflow ids are derived from the job id so a job can only run once at a time.
WORKFLOW_ID_PREFIX = "journal-extraction"

# Timeouts
DB_ACTIVITY_TIMEOUT_SECONDS = 60
SAVE_ACTIVITY_TIMEOUT_SECONDS = 120

# Activity names
ACTIVITY_MARK_PROCESSING = "mark_processing"
ACTIVITY_LOAD_EVIDENCE_SUMMARY = "load_evidence_summary"
ACTIVITY_EXTRACT_EVENTS = "extract_journal_events"
ACTIVITY_SAVE_EVENTS = "save_journal_events"
ACTIVITY_FINALIZE = "finalize_journal_extraction"
ACTIVITY_MARK_FAILED = "mark_extraction_failed"


def workflow_id_for_job(job_id: str) -> str:
    return f"{WORKFLOW_ID_PREFIX}-{job_id}"
