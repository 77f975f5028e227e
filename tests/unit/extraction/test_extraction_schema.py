"""Tests for the structured extraction schema."""

import pytest
from pydantic import ValidationError

from daylight.schemas.extraction import (
    ExtractionEnvelope,
    ExtractionPayload,
    extraction_json_schema,
)


def _walk_objects(node):
    if isinstance(node, dict):
        if node.get("type") == "object" and "properties" in node:
            yield node
        for value in node.values():
            yield from _walk_objects(value)
    elif isinstance(node, list):
        for item in node:
            yield from _walk_objects(item)


def test_json_schema_is_strict_everywhere():
    schema = extraction_json_schema()
    objects = list(_walk_objects(schema))

    assert objects, "schema should contain object definitions"
    for obj in objects:
        assert obj["additionalProperties"] is False
        assert sorted(obj["required"]) == sorted(obj["properties"].keys())


def test_json_schema_drops_defaults_and_titles_but_keeps_title_field():
    schema = extraction_json_schema()

    def annotations(node):
        if isinstance(node, dict):
            for key, value in node.items():
                if key == "default" or (key == "title" and isinstance(value, str)):
                    yield key
                yield from annotations(value)
        elif isinstance(node, list):
            for item in node:
                yield from annotations(item)

    assert list(annotations(schema)) == []
    event_schema = schema["$defs"]["ExtractedEvent"]
    assert "title" in event_schema["properties"]
    assert "title" in event_schema["required"]


def test_event_type_enum_lists_all_nine_kinds():
    event_schema = extraction_json_schema()["$defs"]["ExtractedEvent"]
    assert len(event_schema["properties"]["type"]["enum"]) == 9


def test_envelope_parses_model_output(late_pickup_extraction):
    envelope = ExtractionEnvelope.model_validate(late_pickup_extraction)

    event = envelope.extraction.events[0]
    assert event.type == "coparent_conflict"
    assert event.custody_relevance.welfare_impact.severity == "moderate"
    assert envelope.extraction.action_items[0].priority == "normal"


def test_unknown_event_type_is_rejected(late_pickup_extraction):
    late_pickup_extraction["extraction"]["events"][0]["type"] = "argument"

    with pytest.raises(ValidationError):
        ExtractionEnvelope.model_validate(late_pickup_extraction)


def test_extra_keys_are_rejected(late_pickup_extraction):
    late_pickup_extraction["extraction"]["events"][0]["mood"] = "tense"

    with pytest.raises(ValidationError):
        ExtractionEnvelope.model_validate(late_pickup_extraction)


def test_empty_payload_defaults():
    payload = ExtractionPayload()
    assert payload.events == []
    assert payload.action_items == []
    assert payload.metadata.ambiguities == []
