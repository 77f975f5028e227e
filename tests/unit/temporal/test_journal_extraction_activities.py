"""Tests for the journal extraction activities with services mocked out."""

import json
import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from temporalio.testing import ActivityEnvironment

from daylight.services.extraction.context_builder import ExtractionContext
from daylight.services.extraction.event_persistence import PersistenceReport
from daylight.temporal.activities import journal_extraction as activities

MODULE = "daylight.temporal.activities.journal_extraction"


@pytest.fixture
def session_maker(mock_session):
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=mock_session)
    context.__aexit__ = AsyncMock(return_value=False)
    with patch(f"{MODULE}.async_session_maker", MagicMock(return_value=context)) as maker:
        yield maker


@pytest.mark.asyncio
async def test_save_journal_events_returns_report_summary(session_maker, late_pickup_extraction):
    user_id, entry_id, job_id, evidence_id = (str(uuid.uuid4()) for _ in range(4))
    event_id = uuid.uuid4()
    report = PersistenceReport(
        events_created=1,
        evidence_processed=1,
        action_items_created=1,
        event_ids=[str(event_id)],
    )

    with patch(f"{MODULE}.EventPersistenceService") as service_cls:
        service_cls.return_value.save = AsyncMock(return_value=report)

        summary = await ActivityEnvironment().run(
            activities.save_journal_events,
            user_id,
            entry_id,
            job_id,
            late_pickup_extraction["extraction"],
            [evidence_id],
            "America/New_York",
        )

    kwargs = service_cls.return_value.save.await_args.kwargs
    assert kwargs["journal_entry_id"] == uuid.UUID(entry_id)
    assert kwargs["job_id"] == uuid.UUID(job_id)
    assert kwargs["evidence_ids"] == [uuid.UUID(evidence_id)]
    assert kwargs["extraction"].events[0].type == "coparent_conflict"
    assert summary["events_created"] == 1
    assert summary["event_ids"] == [str(event_id)]
    assert summary["degraded"] is False


@pytest.mark.asyncio
async def test_load_evidence_summary_returns_none_for_missing_evidence(session_maker):
    with patch(f"{MODULE}.ExtractionContextBuilder") as builder_cls:
        builder_cls.return_value.load_evidence_summary = AsyncMock(return_value=None)

        result = await ActivityEnvironment().run(
            activities.load_evidence_summary, str(uuid.uuid4()), str(uuid.uuid4())
        )

    assert result is None


@pytest.mark.asyncio
async def test_mark_extraction_failed_without_entry(session_maker):
    job_id = uuid.uuid4()

    with patch(f"{MODULE}.JobService") as job_service_cls:
        job_service_cls.return_value.mark_failed = AsyncMock()

        await ActivityEnvironment().run(
            activities.mark_extraction_failed, str(job_id), None, "LLM returned invalid JSON"
        )

    job_service_cls.return_value.mark_failed.assert_awaited_once_with(
        job_id, None, "LLM returned invalid JSON"
    )


def test_every_workflow_activity_is_registered():
    names = {fn.__name__ for fn in activities.JOURNAL_EXTRACTION_ACTIVITIES}

    assert names == {
        "mark_processing",
        "load_evidence_summary",
        "extract_journal_events",
        "save_journal_events",
        "finalize_journal_extraction",
        "mark_extraction_failed",
    }


@pytest.mark.asyncio
async def test_extract_journal_events_closes_session_before_model_call(
    session_maker, late_pickup_extraction
):
    order = []
    session_context = session_maker.return_value
    session_context.__aexit__ = AsyncMock(side_effect=lambda *args: order.append("session closed") or False)

    llm_client = MagicMock()

    async def generate_content(**kwargs):
        order.append("model called")
        return json.dumps(late_pickup_extraction)

    llm_client.generate_content = AsyncMock(side_effect=generate_content)
    prompt = ExtractionContext(
        system_prompt="SYSTEM PROMPT",
        timezone="America/New_York",
        reference_date="2026-01-30",
    )

    with patch(f"{MODULE}.ExtractionContextBuilder") as builder_cls, patch(
        "daylight.services.extraction.event_extractor.build_llm_client", return_value=llm_client
    ):
        builder_cls.return_value.build = AsyncMock(return_value=prompt)

        result = await ActivityEnvironment().run(
            activities.extract_journal_events,
            str(uuid.uuid4()),
            "Yesterday at 7pm he was an hour late",
            "2026-01-30",
            "America/New_York",
            [],
        )

    assert order == ["session closed", "model called"]
    builder_cls.return_value.build.assert_awaited_once()
    assert llm_client.generate_content.await_args.kwargs["system_instruction"] == "SYSTEM PROMPT"
    assert result["events"][0]["type"] == "coparent_conflict"
