"""Builds the system prompt context for one extraction run."""

from dataclasses import dataclass
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from daylight.database.models import Case
from daylight.prompts.state_guidance import UNKNOWN_STATE, get_state_guidance
from daylight.prompts.system_prompts import GENERIC_CASE_CONTEXT, build_system_prompt
from daylight.repositories.evidence_repository import EvidenceRepository
from daylight.repositories.profile_repository import CaseRepository, ProfileRepository
from daylight.schemas.extraction import EvidenceSummary
from daylight.utils.logging import get_logger
from daylight.utils.timezone import (
    DEFAULT_TIMEZONE,
    is_valid_timezone,
    local_date_string,
    to_utc_iso,
)

LOGGER = get_logger(__name__)


@dataclass
class ExtractionContext:
    system_prompt: str
    timezone: str
    reference_date: str


def format_case_context(case: Optional[Case]) -> str:
    """Render the ``CASE CONTEXT:`` block, listing only fields that are set.

    Falls back to a generic custody line when there is no case or no field
    is populated.
    """
    if case is None:
        return GENERIC_CASE_CONTEXT

    lines: List[str] = ["CASE CONTEXT:"]

    if case.title:
        lines.append(f"- Case title: {case.title}")
    if case.case_number:
        lines.append(f"- Case number: {case.case_number}")

    if case.jurisdiction_state or case.jurisdiction_county:
        parts = [p for p in (case.jurisdiction_county, case.jurisdiction_state) if p]
        lines.append(f"- Jurisdiction: {', '.join(parts)}")

    if case.court_name:
        lines.append(f"- Court: {case.court_name}")
    if case.case_type:
        lines.append(f"- Case type: {case.case_type}")
    if case.stage:
        lines.append(f"- Case stage: {case.stage}")
    if case.your_role:
        lines.append(f"- Speaker role: {case.your_role}")
    if case.opposing_party_name:
        role_suffix = f" ({case.opposing_party_role})" if case.opposing_party_role else ""
        lines.append(f"- Opposing party: {case.opposing_party_name}{role_suffix}")

    if case.children_count is not None:
        lines.append(f"- Number of children: {case.children_count}")
    if case.children_summary:
        lines.append(f"- Children summary: {case.children_summary}")
    if case.parenting_schedule:
        lines.append(f"- Parenting schedule: {case.parenting_schedule}")
    if case.goals_summary:
        lines.append(f"- Parent goals: {case.goals_summary}")
    if case.risk_flags:
        lines.append(f"- Risk flags: {', '.join(case.risk_flags)}")
    if case.next_court_date:
        lines.append(f"- Next court date: {to_utc_iso(case.next_court_date)}")

    if len(lines) == 1:
        return GENERIC_CASE_CONTEXT
    return "\n".join(lines)


def jurisdiction_guidance_for(case: Optional[Case]) -> Optional[str]:
    """Prompt guidance for the case's state, or None for unknown states."""
    if case is None or not case.jurisdiction_state:
        return None
    guidance = get_state_guidance(case.jurisdiction_state)
    if guidance.state == UNKNOWN_STATE:
        return None
    return guidance.prompt_guidance


class ExtractionContextBuilder:
    """Loads profile, case and evidence rows and assembles the system prompt."""

    def __init__(self, session: AsyncSession):
        self.profile_repo = ProfileRepository(session)
        self.case_repo = CaseRepository(session)
        self.evidence_repo = EvidenceRepository(session)

    async def load_case(self, user_id: UUID) -> Optional[Case]:
        try:
            return await self.case_repo.get_latest_for_user(user_id)
        except SQLAlchemyError as e:
            LOGGER.warning(
                f"Case lookup failed for user {user_id}, using generic context: {e}",
                extra={"user_id": str(user_id)}
            )
            return None

    async def load_evidence_summary(
        self, evidence_id: UUID, user_id: UUID
    ) -> Optional[EvidenceSummary]:
        """Summary of one evidence item, or None when it is missing or not the user's.

        A structured ``extraction_raw.extraction.summary`` wins over the plain
        ``summary`` column.
        """
        evidence = await self.evidence_repo.get_for_user(evidence_id, user_id)
        if evidence is None:
            LOGGER.warning(
                f"Evidence {evidence_id} not found or inaccessible",
                extra={"evidence_id": str(evidence_id), "user_id": str(user_id)}
            )
            return None

        summary = evidence.summary or ""
        raw = evidence.extraction_raw
        if isinstance(raw, dict) and isinstance(raw.get("extraction"), dict):
            summary = raw["extraction"].get("summary") or summary

        return EvidenceSummary(
            evidence_id=str(evidence.id),
            annotation=evidence.user_annotation or "",
            summary=summary,
        )

    async def build(
        self,
        user_id: UUID,
        reference_date: Optional[str],
        timezone: Optional[str],
        evidence: Sequence[EvidenceSummary] = (),
    ) -> ExtractionContext:
        """Assemble the system prompt for one narrative.

        Args:
            user_id: Owner of the narrative
            reference_date: ``YYYY-MM-DD`` in the user's timezone; defaults to today there
            timezone: IANA timezone; defaults to UTC
            evidence: Summaries of attached evidence, in display order
        """
        user_timezone = timezone or DEFAULT_TIMEZONE
        if not is_valid_timezone(user_timezone):
            LOGGER.warning(f"Unknown timezone {user_timezone!r}, falling back to {DEFAULT_TIMEZONE}")
            user_timezone = DEFAULT_TIMEZONE
        trimmed_date = (reference_date or "").strip()
        reference = trimmed_date or local_date_string(user_timezone)

        display_name = await self.profile_repo.get_display_name(user_id)
        case = await self.load_case(user_id)

        system_prompt = build_system_prompt(
            display_name=display_name,
            case_context=format_case_context(case),
            jurisdiction_guidance=jurisdiction_guidance_for(case),
            timezone=user_timezone,
            reference_date=reference,
            evidence=evidence,
        )
        return ExtractionContext(
            system_prompt=system_prompt,
            timezone=user_timezone,
            reference_date=reference,
        )
