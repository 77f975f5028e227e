"""Pytest configuration and shared fixtures."""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from daylight.main import app
from daylight.schemas.extraction import ExtractionPayload


@pytest.fixture
def test_client() -> TestClient:
    """Create FastAPI test client.

    Returns:
        TestClient: FastAPI test client instance
    """
    return TestClient(app)


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    """Ensure FastAPI dependency overrides are reset between tests."""
    app.dependency_overrides = {}
    yield
    app.dependency_overrides = {}


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def mock_session() -> MagicMock:
    """AsyncSession stand-in whose ``begin_nested`` works as an async context manager."""
    session = MagicMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.add = MagicMock()
    session.add_all = MagicMock()

    savepoint = MagicMock()
    savepoint.__aenter__ = AsyncMock(return_value=savepoint)
    savepoint.__aexit__ = AsyncMock(return_value=False)
    session.begin_nested = MagicMock(return_value=savepoint)
    return session


@pytest.fixture
def late_pickup_extraction() -> dict:
    """Model output for "Yesterday at 7pm he was an hour late" (reference date 2026-01-30)."""
    return {
        "extraction": {
            "events": [
                {
                    "type": "coparent_conflict",
                    "title": "Late pickup",
                    "description": "Co-parent arrived one hour late for the 7pm exchange.",
                    "primary_timestamp": "2026-01-29T19:00:00Z",
                    "timestamp_precision": "exact",
                    "duration_minutes": 60,
                    "location": None,
                    "participants": {"primary": ["co-parent"], "witnesses": [], "professionals": []},
                    "child_involved": True,
                    "evidence_mentioned": [],
                    "child_statements": [],
                    "coparent_interaction": None,
                    "patterns_noted": [
                        {
                            "pattern_type": "schedule_violation",
                            "description": "Late to the exchange",
                            "frequency": "recurring",
                        }
                    ],
                    "custody_relevance": {
                        "agreement_violation": True,
                        "safety_concern": False,
                        "welfare_impact": {
                            "category": "routine",
                            "direction": "negative",
                            "severity": "moderate",
                        },
                    },
                }
            ],
            "action_items": [
                {
                    "priority": "normal",
                    "type": "document",
                    "description": "Record the late arrival in the exchange log",
                    "deadline": None,
                }
            ],
            "metadata": {"extraction_confidence": 0.9, "ambiguities": []},
        }
    }


@pytest.fixture
def late_pickup_payload(late_pickup_extraction) -> ExtractionPayload:
    return ExtractionPayload.model_validate(late_pickup_extraction["extraction"])
