"""Jurisdiction-specific custody guidance appended to the extraction prompt."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class StateGuidance:
    state: str
    statute: str
    standard: str
    key_factors: List[str] = field(default_factory=list)
    prompt_guidance: str = ""


UNKNOWN_STATE = "Unknown"

STATE_CUSTODY_GUIDANCE: Dict[str, StateGuidance] = {
    "Virginia": StateGuidance(
        state="Virginia",
        statute="VA Code § 20-124.3",
        standard="best interests of the child",
        key_factors=[
            "Each parent's role in caregiving (who handles daily care, medical appointments, school)",
            "Willingness to support the child's relationship with the other parent "
            "(including avoiding unreasonable denial of access or visitation)",
            "Ability to maintain a close and continuing relationship with the child",
            "Child's reasonable preference (if of appropriate age and maturity)",
            "History of family abuse or violence",
            "Each parent's ability to resolve disputes and cooperate in matters affecting the child",
            "Propensity of each parent to support the child's contact and relationship with the other parent",
        ],
        prompt_guidance="""Virginia courts apply the "best interests of the child" standard under VA Code § 20-124.3.
Key factors weighted heavily include:
- Each parent's role in daily caregiving (who handles meals, bedtime, medical care, school involvement)
- Willingness to support the child's relationship with the other parent (evidence of gatekeeping or unreasonable denial of access is damaging)
- Ability to maintain a close and continuing relationship with the child
- Each parent's ability to resolve disputes without unnecessary conflict
- History of family abuse or violence (if applicable)

Document events that speak to these specific factors. Juvenile & Domestic Relations (J&DR) courts look for patterns of behavior over time, not just isolated incidents.""",
    ),
    "California": StateGuidance(
        state="California",
        statute="Family Code § 3011",
        standard="best interest of the child",
        key_factors=[
            "Health, safety, and welfare of the child",
            "Any history of abuse by a parent or person seeking custody",
            "Nature and amount of contact with both parents",
            "Habitual or continual use of alcohol or controlled substances by a parent",
        ],
        prompt_guidance="""California courts apply Family Code § 3011 for custody determinations.
Key considerations include:
- Health, safety, and welfare of the child
- Any history of abuse by a parent or person seeking custody
- The nature and amount of contact the child has with both parents
- Any habitual or continual abuse of alcohol or use of controlled substances by either parent

Document events related to these factors specifically, especially anything that affects safety, stability, and the quality of the child's relationship with each parent.""",
    ),
}

DEFAULT_GUIDANCE = StateGuidance(
    state=UNKNOWN_STATE,
    statute="General family law principles",
    standard="best interests of the child",
    key_factors=[
        "Each parent's caregiving role",
        "Stability and continuity in the child's life",
        "Parents' ability to co-parent and communicate effectively",
        "Child's physical and emotional needs and, when appropriate, preferences",
    ],
    prompt_guidance="""Courts generally apply a "best interests of the child" standard.
Common factors include:
- Each parent's role in caregiving and meeting the child's daily needs
- Stability and continuity in the child's routines and living situation
- Parents' ability to co-parent effectively and support the child's relationship with the other parent
- Child's physical and emotional needs and, when appropriate, the child's expressed preferences

Document events that demonstrate your involvement and any concerning behaviors by the other party, with clear, factual descriptions.""",
)

STATE_ABBREVIATIONS = {
    "VA": "Virginia",
    "CA": "California",
    "TX": "Texas",
    "NY": "New York",
    "FL": "Florida",
    "PA": "Pennsylvania",
}


def normalize_state_name(value: str) -> str:
    """Expand a known abbreviation, otherwise title-case each word."""
    trimmed = value.strip()
    abbreviation = STATE_ABBREVIATIONS.get(trimmed.upper())
    if abbreviation:
        return abbreviation
    return " ".join(word[:1].upper() + word[1:].lower() for word in trimmed.split())


def get_state_guidance(jurisdiction_state: Optional[str]) -> StateGuidance:
    if not jurisdiction_state:
        return DEFAULT_GUIDANCE
    return STATE_CUSTODY_GUIDANCE.get(normalize_state_name(jurisdiction_state), DEFAULT_GUIDANCE)
