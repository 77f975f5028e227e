"""Structured output schema for journal extraction.

These models define both the JSON schema the model must follow and the
validated payload the pipeline persists. Only the granular event schema lives
here; legacy enum values are derived later by
``daylight.services.extraction.legacy_mapping``.
"""

from copy import deepcopy
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

EventType = Literal[
    "parenting_time",
    "caregiving",
    "household",
    "coparent_conflict",
    "gatekeeping",
    "communication",
    "medical",
    "school",
    "legal",
]
TimestampPrecision = Literal["exact", "day", "approximate", "unknown"]
PrimaryParticipant = Literal["co-parent", "child", "self", "other"]
Tone = Literal["neutral", "cooperative", "defensive", "hostile"]
PatternType = Literal[
    "schedule_violation",
    "communication_failure",
    "escalating_hostility",
    "delegation_of_parenting",
    "routine_disruption",
    "information_withholding",
    "unilateral_decisions",
]
PatternFrequency = Literal["first_time", "recurring", "chronic"]
WelfareCategory = Literal["routine", "emotional", "medical", "educational", "social", "safety", "none"]
WelfareDirection = Literal["positive", "negative", "neutral"]
WelfareSeverity = Literal["minimal", "moderate", "significant"]
EvidenceType = Literal["text", "email", "photo", "document", "recording", "other"]
EvidenceStatus = Literal["have", "need_to_get", "need_to_create"]
ActionPriority = Literal["urgent", "high", "normal", "low"]
ActionType = Literal["document", "contact", "file", "obtain", "other"]


class _StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class Participants(_StrictModel):
    primary: List[PrimaryParticipant] = Field(default_factory=list, description="Primary participants")
    witnesses: List[str] = Field(default_factory=list, description="Witnesses present")
    professionals: List[str] = Field(default_factory=list, description="Professionals involved")


class ChildStatement(_StrictModel):
    statement: str = Field(..., description="Direct quote or paraphrased statement from the child")
    context: str = Field(..., description="When and where the statement was made")
    concerning: bool = Field(
        ..., description="Whether this statement indicates alienation, coaching, or distress"
    )


class CoparentInteraction(_StrictModel):
    your_tone: Optional[Tone] = None
    their_tone: Optional[Tone] = None
    your_response_appropriate: Optional[bool] = Field(
        None, description="Whether the user's response was appropriate to the situation"
    )


class PatternNoted(_StrictModel):
    pattern_type: PatternType
    description: str
    frequency: Optional[PatternFrequency] = None


class WelfareImpact(_StrictModel):
    """Impact on child welfare with category, direction, and severity."""

    category: WelfareCategory
    direction: WelfareDirection
    severity: Optional[WelfareSeverity] = None


class CustodyRelevance(_StrictModel):
    agreement_violation: Optional[bool] = Field(None, description="Whether this violates a custody agreement")
    safety_concern: Optional[bool] = Field(None, description="Whether there are safety concerns")
    welfare_impact: Optional[WelfareImpact] = None


class EvidenceMentioned(_StrictModel):
    type: EvidenceType = Field(..., description="Type of evidence")
    description: str = Field(..., description="Description of the evidence")
    status: EvidenceStatus = Field(..., description="Current status of the evidence")


class ExtractedEvent(_StrictModel):
    type: EventType = Field(..., description="Type of event")
    title: str = Field(..., description="Brief factual summary")
    description: str = Field(..., description="Detailed factual narrative")
    primary_timestamp: Optional[str] = Field(None, description="ISO-8601 timestamp or null if unknown")
    timestamp_precision: TimestampPrecision = Field("unknown", description="How precise the timestamp is")
    duration_minutes: Optional[float] = Field(None, description="Duration in minutes if applicable")
    location: Optional[str] = Field(None, description="Location where event occurred")
    participants: Participants = Field(default_factory=Participants)
    child_involved: bool = Field(False, description="Whether a child was involved")
    evidence_mentioned: List[EvidenceMentioned] = Field(default_factory=list)
    child_statements: List[ChildStatement] = Field(
        default_factory=list, description="Direct quotes or paraphrased statements from the child"
    )
    coparent_interaction: Optional[CoparentInteraction] = Field(
        None, description="Analysis of co-parent interaction tone when applicable"
    )
    patterns_noted: List[PatternNoted] = Field(
        default_factory=list, description="Patterns relevant to custody with type and frequency"
    )
    custody_relevance: Optional[CustodyRelevance] = None


class ActionItemDraft(_StrictModel):
    priority: ActionPriority = Field(..., description="Priority level")
    type: ActionType = Field(..., description="Type of action")
    description: str = Field(..., description="Description of the action item")
    deadline: Optional[str] = Field(None, description="Deadline for the action")


class ExtractionMetadata(_StrictModel):
    extraction_confidence: Optional[float] = Field(None, description="Confidence score for extraction")
    ambiguities: List[str] = Field(default_factory=list, description="Notes about ambiguous elements")


class ExtractionPayload(_StrictModel):
    events: List[ExtractedEvent] = Field(default_factory=list, description="Extracted events")
    action_items: List[ActionItemDraft] = Field(default_factory=list, description="Action items identified")
    metadata: ExtractionMetadata = Field(default_factory=ExtractionMetadata)


class ExtractionEnvelope(_StrictModel):
    extraction: ExtractionPayload


class EvidenceSummary(BaseModel):
    """Evidence context handed to the prompt builder."""

    evidence_id: str
    annotation: str = ""
    summary: str = ""


_UNSUPPORTED_SCHEMA_KEYS = ("default", "title")
# Keys whose values map names to subschemas; field names such as "title" live here.
_NAMED_SCHEMA_MAPS = ("properties", "$defs")


def _make_strict(node: Any) -> Any:
    if isinstance(node, dict):
        cleaned = {}
        for key, value in node.items():
            if key in _UNSUPPORTED_SCHEMA_KEYS:
                continue
            if key in _NAMED_SCHEMA_MAPS and isinstance(value, dict):
                cleaned[key] = {name: _make_strict(sub) for name, sub in value.items()}
            else:
                cleaned[key] = _make_strict(value)
        if cleaned.get("type") == "object" and "properties" in cleaned:
            cleaned["additionalProperties"] = False
            cleaned["required"] = list(cleaned["properties"].keys())
        return cleaned
    if isinstance(node, list):
        return [_make_strict(item) for item in node]
    return node


def extraction_json_schema() -> Dict[str, Any]:
    """JSON schema for ``ExtractionEnvelope`` in strict structured-output form.

    Every object forbids extra keys and lists all of its properties as
    required; optional fields stay nullable instead of omittable.
    """
    schema = deepcopy(ExtractionEnvelope.model_json_schema())
    return _make_strict(schema)
