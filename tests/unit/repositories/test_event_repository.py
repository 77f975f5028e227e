"""Tests for EventRepository deletes."""

import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.dialects import postgresql

from daylight.repositories.event_repository import EventRepository


def _sql(statement) -> str:
    return str(statement.compile(dialect=postgresql.dialect()))


@pytest.mark.asyncio
async def test_delete_with_dependents_scopes_every_table_to_the_user(mock_session, user_id):
    mock_session.execute = AsyncMock(return_value=SimpleNamespace(rowcount=2))
    repo = EventRepository(mock_session)

    deleted = await repo.delete_with_dependents([uuid.uuid4(), uuid.uuid4()], user_id)

    assert deleted == 2
    statements = [_sql(call.args[0]) for call in mock_session.execute.await_args_list]
    assert [sql.split()[2] for sql in statements] == [
        "event_participants",
        "evidence_mentions",
        "event_evidence",
        "action_items",
        "events",
    ]
    for sql in statements:
        assert "events.user_id" in sql


@pytest.mark.asyncio
async def test_delete_with_no_ids_runs_nothing(mock_session, user_id):
    repo = EventRepository(mock_session)

    assert await repo.delete_with_dependents([], user_id) == 0
    mock_session.execute.assert_not_awaited()
