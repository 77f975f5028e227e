"""Tests for prompt context assembly."""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from daylight.database.models import Case, Evidence
from daylight.prompts.state_guidance import get_state_guidance, normalize_state_name
from daylight.prompts.system_prompts import GENERIC_CASE_CONTEXT
from daylight.schemas.extraction import EvidenceSummary
from daylight.services.extraction.context_builder import (
    ExtractionContextBuilder,
    format_case_context,
    jurisdiction_guidance_for,
)


def _case(**fields) -> Case:
    return Case(id=uuid.uuid4(), user_id=uuid.uuid4(), **fields)


@pytest.fixture
def builder(mock_session) -> ExtractionContextBuilder:
    builder = ExtractionContextBuilder(mock_session)
    builder.profile_repo = MagicMock()
    builder.profile_repo.get_display_name = AsyncMock(return_value="Jordan")
    builder.case_repo = MagicMock()
    builder.case_repo.get_latest_for_user = AsyncMock(return_value=None)
    builder.evidence_repo = MagicMock()
    return builder


class TestFormatCaseContext:

    def test_no_case_uses_generic_line(self):
        assert format_case_context(None) == GENERIC_CASE_CONTEXT

    def test_case_without_fields_uses_generic_line(self):
        assert format_case_context(_case()) == GENERIC_CASE_CONTEXT

    def test_lists_only_present_fields(self):
        case = _case(
            title="Smith v. Smith",
            jurisdiction_state="Virginia",
            jurisdiction_county="Fairfax",
            opposing_party_name="Alex",
            opposing_party_role="father",
            children_count=2,
            risk_flags=["substance use", "relocation"],
            next_court_date=datetime(2026, 3, 1, 14, 0, tzinfo=timezone.utc),
        )

        context = format_case_context(case)

        assert context.startswith("CASE CONTEXT:")
        assert "- Case title: Smith v. Smith" in context
        assert "- Jurisdiction: Fairfax, Virginia" in context
        assert "- Opposing party: Alex (father)" in context
        assert "- Number of children: 2" in context
        assert "- Risk flags: substance use, relocation" in context
        assert "- Next court date: 2026-03-01T14:00:00.000Z" in context
        assert "Case number" not in context
        assert "Court:" not in context

    def test_zero_children_is_still_listed(self):
        assert "- Number of children: 0" in format_case_context(_case(children_count=0))


class TestJurisdictionGuidance:

    def test_abbreviation_expands_to_full_state(self):
        assert normalize_state_name("va") == "Virginia"
        assert get_state_guidance("CA").state == "California"

    def test_other_input_is_title_cased(self):
        assert normalize_state_name("  new   mexico ") == "New Mexico"

    def test_known_state_adds_guidance(self):
        guidance = jurisdiction_guidance_for(_case(jurisdiction_state="VA"))
        assert guidance == get_state_guidance("Virginia").prompt_guidance

    def test_unknown_state_is_omitted(self):
        assert jurisdiction_guidance_for(_case(jurisdiction_state="TX")) is None
        assert jurisdiction_guidance_for(_case()) is None
        assert jurisdiction_guidance_for(None) is None


class TestExtractionContextBuilder:

    @pytest.mark.asyncio
    async def test_build_uses_supplied_reference_date_and_timezone(self, builder, user_id):
        context = await builder.build(
            user_id=user_id,
            reference_date=" 2026-01-30 ",
            timezone="America/New_York",
        )

        assert context.reference_date == "2026-01-30"
        assert context.timezone == "America/New_York"
        assert "The user is in timezone: America/New_York" in context.system_prompt
        assert "The reference date for these events is: 2026-01-30" in context.system_prompt
        assert "The speaker is Jordan." in context.system_prompt
        assert GENERIC_CASE_CONTEXT in context.system_prompt

    @pytest.mark.asyncio
    async def test_build_defaults_to_utc_and_today(self, builder, user_id):
        context = await builder.build(user_id=user_id, reference_date=None, timezone=None)

        assert context.timezone == "UTC"
        assert context.reference_date == datetime.now(timezone.utc).strftime("%Y-%m-%d")

    @pytest.mark.asyncio
    async def test_invalid_timezone_falls_back_to_utc(self, builder, user_id):
        context = await builder.build(user_id=user_id, reference_date="2026-01-30", timezone="Nowhere/City")
        assert context.timezone == "UTC"

    @pytest.mark.asyncio
    async def test_anonymous_speaker_line(self, builder, user_id):
        builder.profile_repo.get_display_name = AsyncMock(return_value=None)

        context = await builder.build(user_id=user_id, reference_date="2026-01-30", timezone="UTC")

        assert 'The speaker is the user.' in context.system_prompt

    @pytest.mark.asyncio
    async def test_case_lookup_failure_falls_back_to_generic_context(self, builder, user_id):
        builder.case_repo.get_latest_for_user = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("connection reset"))
        )

        context = await builder.build(user_id=user_id, reference_date="2026-01-30", timezone="UTC")

        assert GENERIC_CASE_CONTEXT in context.system_prompt

    @pytest.mark.asyncio
    async def test_jurisdiction_section_for_known_state(self, builder, user_id):
        builder.case_repo.get_latest_for_user = AsyncMock(
            return_value=_case(jurisdiction_state="CA", title="In re Marriage")
        )

        context = await builder.build(user_id=user_id, reference_date="2026-01-30", timezone="UTC")

        assert "JURISDICTION-SPECIFIC GUIDANCE:" in context.system_prompt
        assert "CASE CONTEXT:" in context.system_prompt

    @pytest.mark.asyncio
    async def test_evidence_section_lists_notes_and_analysis(self, builder, user_id):
        evidence = [
            EvidenceSummary(evidence_id="e1", annotation="Text from Alex", summary="Message says 8pm"),
            EvidenceSummary(evidence_id="e2", annotation="", summary="Photo of the driveway"),
        ]

        context = await builder.build(
            user_id=user_id, reference_date="2026-01-30", timezone="UTC", evidence=evidence
        )

        assert "## Attached Evidence" in context.system_prompt
        assert 'Evidence 1:\n  User\'s note: "Text from Alex"\n  Analysis: Message says 8pm' in context.system_prompt
        assert "Evidence 2:\n  Analysis: Photo of the driveway" in context.system_prompt

    @pytest.mark.asyncio
    async def test_no_evidence_section_without_evidence(self, builder, user_id):
        context = await builder.build(user_id=user_id, reference_date="2026-01-30", timezone="UTC")
        assert "## Attached Evidence" not in context.system_prompt


class TestLoadEvidenceSummary:

    @pytest.mark.asyncio
    async def test_structured_summary_wins(self, builder, user_id):
        evidence = Evidence(
            id=uuid.uuid4(),
            user_id=user_id,
            summary="plain summary",
            user_annotation="note",
            extraction_raw={"extraction": {"summary": "structured summary"}},
        )
        builder.evidence_repo.get_for_user = AsyncMock(return_value=evidence)

        summary = await builder.load_evidence_summary(evidence.id, user_id)

        assert summary.summary == "structured summary"
        assert summary.annotation == "note"
        assert summary.evidence_id == str(evidence.id)

    @pytest.mark.asyncio
    async def test_plain_summary_when_no_structured_summary(self, builder, user_id):
        evidence = Evidence(id=uuid.uuid4(), user_id=user_id, summary="plain summary")
        builder.evidence_repo.get_for_user = AsyncMock(return_value=evidence)

        summary = await builder.load_evidence_summary(evidence.id, user_id)

        assert summary.summary == "plain summary"
        assert summary.annotation == ""

    @pytest.mark.asyncio
    async def test_missing_evidence_returns_none(self, builder, user_id):
        builder.evidence_repo.get_for_user = AsyncMock(return_value=None)

        assert await builder.load_evidence_summary(uuid.uuid4(), user_id) is None
