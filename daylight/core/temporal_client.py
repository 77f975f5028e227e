"""Shared Temporal client for the API process.

The connection is created on first use and reused by every request that
starts an extraction workflow.
"""

import asyncio
from typing import Optional

from temporalio.client import Client as TemporalClient

from daylight.config import settings
from daylight.utils.logging import get_logger

LOGGER = get_logger(__name__)


class TemporalClientManager:
    """Holds one lazily connected client per process."""

    def __init__(self):
        self._client: Optional[TemporalClient] = None
        self._lock = asyncio.Lock()

    @property
    def target(self) -> str:
        return f"{settings.temporal_host}:{settings.temporal_port}"

    async def get_client(self) -> TemporalClient:
        if self._client is not None:
            return self._client

        # Concurrent first requests share a single connect.
        async with self._lock:
            if self._client is None:
                LOGGER.info(f"Connecting to Temporal at {self.target} (namespace {settings.temporal_namespace})")
                self._client = await TemporalClient.connect(
                    self.target, namespace=settings.temporal_namespace
                )
        return self._client

    def reset(self) -> None:
        """Forget the cached client; the next call reconnects."""
        self._client = None


_temporal_manager = TemporalClientManager()


async def get_temporal_client() -> TemporalClient:
    return await _temporal_manager.get_client()


async def close_temporal_client() -> None:
    _temporal_manager.reset()
