# System prompt text for journal event extraction.
#
# The prompt is assembled per request from:
#   1) the fixed preamble
#   2) speaker and case context (see services/extraction/context_builder.py)
#   3) optional jurisdiction guidance
#   4) temporal guidance for the user's timezone and reference date
#   5) attached evidence summaries
#   6) the extraction rules

from typing import List, Optional, Sequence

from daylight.schemas.extraction import EvidenceSummary

PREAMBLE_LINES = [
    "You are an extraction engine for Project Daylight.",
    "Given a description of events from a parent in a custody situation, extract factual, legally relevant information.",
    "Do not provide advice, opinions, or legal conclusions.",
]

GENERIC_CASE_CONTEXT = "The speaker is involved in a family court / custody / divorce matter."

NAMED_SPEAKER_TEMPLATE = 'The speaker is {name}. When they say "I" or "me", they refer to {name}.'
ANONYMOUS_SPEAKER_LINE = 'The speaker is the user. References to "I" or "me" refer to the same person.'

EXTRACTION_RULES = [
    "Rules:",
    "- Extract facts, not interpretations or emotions.",
    '- If information is unknown, use null or "unknown" appropriately.',
    "- Prefer under-extraction to guessing.",
    "- Keep tone neutral and factual.",
    "- You may extract multiple events from a single description.",
    "- Cross-reference the attached evidence to corroborate details.",
    '- Flag "gatekeeping" behaviors explicitly: schedule interference, withholding information '
    "(medical, school, location), controlling access to the child's belongings, alienating language "
    "to or about the other parent in the child's presence, and unilateral decisions about the child's "
    "schedule or activities.",
    "- Note patterns relevant to custody, including:",
    "  - Repeated schedule violations (late pickups, early dropoffs, missed exchanges)",
    "  - Consistent failure to communicate about the child's welfare",
    "  - Escalating hostility in co-parent interactions",
    "  - Delegation of parenting to third parties (new partners, grandparents doing primary care)",
    "  - Disruption of the child's routine (bedtime, meals, activities)",
    "  - Withholding of medical or school information",
    "  - Pattern of unilateral decision-making about major issues.",
]


def speaker_line(display_name: Optional[str]) -> str:
    if display_name:
        return NAMED_SPEAKER_TEMPLATE.format(name=display_name)
    return ANONYMOUS_SPEAKER_LINE


def jurisdiction_section(prompt_guidance: str) -> str:
    return "\n".join(["", "JURISDICTION-SPECIFIC GUIDANCE:", prompt_guidance])


def temporal_guidance(timezone: str, reference_date: str) -> str:
    return "\n".join([
        f"The user is in timezone: {timezone}",
        f"The reference date for these events is: {reference_date} (in the user's local timezone)",
        "",
        "IMPORTANT: When generating primary_timestamp values:",
        f"- Generate timestamps in the user's timezone ({timezone})",
        '- For example, if the user says "yesterday at 7pm" and the reference date is 2026-01-30, '
        'generate "2026-01-29T19:00:00" (without Z suffix) to represent 7pm local time',
        '- Include timezone offset in ISO format, e.g., "2026-01-29T19:00:00-05:00" for Eastern Time',
        '- Resolve relative time references (like "yesterday", "this morning", "last week") '
        "based on the reference date",
        '- If you cannot determine a specific time, set timestamp_precision to "approximate" or "unknown"',
    ])


def evidence_section(evidence: Sequence[EvidenceSummary]) -> str:
    """Render attached evidence, or an empty string when there is none."""
    if not evidence:
        return ""

    evidence_lines: List[str] = []
    for index, item in enumerate(evidence, start=1):
        line = f"Evidence {index}:"
        if item.annotation:
            line += f'\n  User\'s note: "{item.annotation}"'
        if item.summary:
            line += f"\n  Analysis: {item.summary}"
        evidence_lines.append(line)

    return "\n".join([
        "",
        "## Attached Evidence",
        "The user has attached the following evidence to support their description:",
        "",
        *evidence_lines,
        "",
        "Use information from this evidence to enhance the accuracy of extracted events.",
        "Reference specific details (timestamps, quotes, facts) from the evidence when relevant.",
    ])


def build_system_prompt(
    display_name: Optional[str],
    case_context: str,
    jurisdiction_guidance: Optional[str],
    timezone: str,
    reference_date: str,
    evidence: Sequence[EvidenceSummary] = (),
) -> str:
    lines = [*PREAMBLE_LINES, "", speaker_line(display_name), case_context]
    if jurisdiction_guidance:
        lines.append(jurisdiction_section(jurisdiction_guidance))
    lines.extend([
        "",
        temporal_guidance(timezone, reference_date),
        evidence_section(evidence),
        "",
        *EXTRACTION_RULES,
    ])
    return "\n".join(lines)
