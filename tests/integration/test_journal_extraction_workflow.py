"""Integration tests for JournalExtractionWorkflow.

Activities are replaced by a dispatcher keyed on activity name, so these
tests cover phase order, argument wiring and the failure path:
- mark_processing
- load_evidence_summary (per evidence id)
- extract_journal_events
- save_journal_events
- finalize_journal_extraction
"""

from uuid import uuid4
from unittest.mock import MagicMock, patch

import pytest

from daylight.temporal.workflows.journal_extraction import (
    JournalExtractionRequest,
    JournalExtractionWorkflow,
)

pytestmark = pytest.mark.integration


class TestJournalExtractionWorkflow:

    @pytest.fixture
    def request_data(self):
        return JournalExtractionRequest(
            job_id=str(uuid4()),
            journal_entry_id=str(uuid4()),
            user_id=str(uuid4()),
            event_text="Yesterday at 7pm he was an hour late",
            reference_date="2026-01-30",
            timezone="America/New_York",
            evidence_ids=[str(uuid4()), str(uuid4())],
        )

    @pytest.fixture
    def save_report(self):
        return {
            "events_created": 1,
            "event_ids": [str(uuid4())],
            "action_items_created": 1,
            "evidence_processed": 2,
            "degraded": False,
            "failures": [],
        }

    @pytest.fixture
    def calls(self):
        return []

    @pytest.fixture
    def dispatcher(self, calls, late_pickup_extraction, save_report, request_data):
        summaries = {
            request_data.evidence_ids[0]: {
                "evidence_id": request_data.evidence_ids[0],
                "annotation": "Screenshot of texts",
                "summary": "",
            },
            request_data.evidence_ids[1]: None,
        }
        results = {
            "mark_processing": None,
            "extract_journal_events": late_pickup_extraction["extraction"],
            "save_journal_events": save_report,
            "finalize_journal_extraction": None,
            "mark_extraction_failed": None,
        }

        async def execute_activity(name, *args, **kwargs):
            activity_args = kwargs.get("args", [])
            calls.append((name, activity_args))
            if name == "load_evidence_summary":
                return summaries[activity_args[0]]
            return results[name]

        return execute_activity

    @pytest.mark.asyncio
    async def test_workflow_runs_phases_in_order(
        self, request_data, dispatcher, calls, late_pickup_extraction, save_report
    ):
        workflow = JournalExtractionWorkflow()

        with patch("daylight.temporal.workflows.journal_extraction.workflow") as mock_workflow:
            mock_workflow.execute_activity = dispatcher
            mock_workflow.logger = MagicMock()

            result = await workflow.run(request_data)

        assert result == save_report
        assert [name for name, _ in calls] == [
            "mark_processing",
            "load_evidence_summary",
            "load_evidence_summary",
            "extract_journal_events",
            "save_journal_events",
            "finalize_journal_extraction",
        ]

        args_by_name = dict(calls)
        assert args_by_name["mark_processing"] == [request_data.job_id, request_data.journal_entry_id]

        extract_args = args_by_name["extract_journal_events"]
        assert extract_args[:4] == [
            request_data.user_id,
            request_data.event_text,
            "2026-01-30",
            "America/New_York",
        ]
        # The second evidence item has no summary and is left out of the prompt.
        assert [s["evidence_id"] for s in extract_args[4]] == [request_data.evidence_ids[0]]

        assert args_by_name["save_journal_events"] == [
            request_data.user_id,
            request_data.journal_entry_id,
            request_data.job_id,
            late_pickup_extraction["extraction"],
            request_data.evidence_ids,
            "America/New_York",
        ]
        assert args_by_name["finalize_journal_extraction"] == [
            request_data.job_id,
            request_data.journal_entry_id,
            late_pickup_extraction["extraction"],
            save_report,
        ]

        status = workflow.get_status()
        assert status["status"] == "completed"
        assert status["current_phase"] is None
        assert status["progress"] == 1.0
        assert status["events_created"] == 1

    @pytest.mark.asyncio
    async def test_failed_phase_marks_job_failed_and_reraises(self, request_data, dispatcher, calls):
        workflow = JournalExtractionWorkflow()

        async def failing_dispatch(name, *args, **kwargs):
            if name == "extract_journal_events":
                calls.append((name, kwargs.get("args", [])))
                raise RuntimeError("LLM returned invalid JSON")
            return await dispatcher(name, *args, **kwargs)

        with patch("daylight.temporal.workflows.journal_extraction.workflow") as mock_workflow:
            mock_workflow.execute_activity = failing_dispatch
            mock_workflow.logger = MagicMock()

            with pytest.raises(RuntimeError, match="invalid JSON"):
                await workflow.run(request_data)

        names = [name for name, _ in calls]
        assert "save_journal_events" not in names
        assert names[-1] == "mark_extraction_failed"
        assert calls[-1][1] == [
            request_data.job_id,
            request_data.journal_entry_id,
            "LLM returned invalid JSON",
        ]

        status = workflow.get_status()
        assert status["status"] == "failed"
        assert status["current_phase"] == "extract_events"

    @pytest.mark.asyncio
    async def test_no_evidence_skips_summary_loading(self, request_data, dispatcher, calls):
        request_data.evidence_ids = []
        workflow = JournalExtractionWorkflow()

        with patch("daylight.temporal.workflows.journal_extraction.workflow") as mock_workflow:
            mock_workflow.execute_activity = dispatcher
            mock_workflow.logger = MagicMock()

            await workflow.run(request_data)

        names = [name for name, _ in calls]
        assert "load_evidence_summary" not in names
        assert dict(calls)["extract_journal_events"][4] == []

    def test_initial_status(self):
        workflow = JournalExtractionWorkflow()

        status = workflow.get_status()
        assert status["status"] == "initialized"
        assert status["current_phase"] is None
        assert status["progress"] == 0.0
        assert status["events_created"] is None
