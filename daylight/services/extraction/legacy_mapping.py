"""Projection from the granular event schema onto the legacy enum columns.

``events.type`` and ``events.welfare_impact`` are read by older consumers.
They are only ever computed here from ``type_v2`` and the welfare triple.
"""

from typing import Optional

from daylight.schemas.extraction import WelfareImpact

LEGACY_TYPE_BY_EVENT_TYPE = {
    "parenting_time": "positive",
    "caregiving": "positive",
    "household": "positive",
    "coparent_conflict": "incident",
    "gatekeeping": "incident",
    "communication": "communication",
    "medical": "medical",
    "school": "school",
    "legal": "legal",
}

LEGACY_WELFARE_BY_SEVERITY = {
    "minimal": "minor",
    "moderate": "moderate",
    "significant": "significant",
}

UNKNOWN_WELFARE = "unknown"


def map_new_to_legacy_type(event_type: Optional[str]) -> str:
    return LEGACY_TYPE_BY_EVENT_TYPE.get(event_type, "incident")


def map_new_to_legacy_welfare(welfare_impact: Optional[WelfareImpact]) -> Optional[str]:
    """Collapse category/direction/severity into the legacy welfare enum.

    Returns None when there is no welfare impact at all; the write path
    stores that as ``unknown``.
    """
    if welfare_impact is None:
        return None
    if welfare_impact.direction == "positive":
        return "positive"
    if welfare_impact.direction == "neutral":
        return "none"
    return LEGACY_WELFARE_BY_SEVERITY.get(welfare_impact.severity, UNKNOWN_WELFARE)
