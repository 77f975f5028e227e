"""Temporal worker for journal extraction.

Runs two things side by side:
- the worker polling ``settings.temporal_task_queue`` with the journal
  extraction workflow and its activities
- a small health endpoint for the container platform
"""

import asyncio
import os
from typing import Optional

import uvicorn
from fastapi import FastAPI, Response, status
from temporalio.client import Client
from temporalio.worker import Worker
from temporalio.worker.workflow_sandbox import SandboxedWorkflowRunner, SandboxRestrictions

from daylight.config import settings
from daylight.temporal.activities.journal_extraction import JOURNAL_EXTRACTION_ACTIVITIES
from daylight.temporal.workflows.journal_extraction import JournalExtractionWorkflow
from daylight.utils.logging import get_logger

logger = get_logger(__name__)

TEMPORAL_TARGET = f"{settings.temporal_host}:{settings.temporal_port}"

app = FastAPI(title="Journal Extraction Worker Health Check")
app.state.worker_running = False


@app.get("/health")
async def health(response: Response):
    """200 once the worker is polling, 503 while it connects or after it stops."""
    running = app.state.worker_running
    if not running:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {
        "status": "ok" if running else "starting",
        "service": "journal-extraction-worker",
        "task_queue": settings.temporal_task_queue,
    }


async def run_health_check_server():
    port = int(os.getenv("WORKER_HEALTH_PORT", 8001))
    logger.info(f"Starting health check server on port {port}")
    server = uvicorn.Server(uvicorn.Config(app, host="0.0.0.0", port=port, log_level="warning"))
    await server.serve()


async def connect_client(max_retries: int = 5, retry_delay: int = 5) -> Client:
    """Connect to Temporal, waiting for the server while it starts up."""
    last_error: Optional[Exception] = None
    for attempt in range(1, max_retries + 1):
        try:
            logger.info(f"Connecting to Temporal at {TEMPORAL_TARGET} (attempt {attempt}/{max_retries})")
            return await Client.connect(
                target_host=TEMPORAL_TARGET,
                namespace=settings.temporal_namespace,
            )
        except Exception as e:
            last_error = e
            if attempt < max_retries:
                logger.warning(f"Temporal not reachable: {e}. Retrying in {retry_delay}s")
                await asyncio.sleep(retry_delay)

    logger.error(f"Giving up on Temporal at {TEMPORAL_TARGET} after {max_retries} attempts")
    raise last_error


def build_worker(client: Client) -> Worker:
    return Worker(
        client,
        task_queue=settings.temporal_task_queue,
        workflows=[JournalExtractionWorkflow],
        activities=JOURNAL_EXTRACTION_ACTIVITIES,
        max_concurrent_activities=10,
        max_concurrent_workflow_tasks=20,
        # Workflow code only imports constants and settings; pass them through
        # instead of re-importing them inside the sandbox.
        workflow_runner=SandboxedWorkflowRunner(
            restrictions=SandboxRestrictions.default.with_passthrough_all_modules()
        ),
    )


async def run_worker():
    client = await connect_client()
    worker = build_worker(client)

    logger.info(
        f"Worker polling {settings.temporal_task_queue} on {TEMPORAL_TARGET} with activities "
        f"{[fn.__name__ for fn in JOURNAL_EXTRACTION_ACTIVITIES]}"
    )
    app.state.worker_running = True
    try:
        await worker.run()
    finally:
        app.state.worker_running = False


async def main():
    await asyncio.gather(run_health_check_server(), run_worker())


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
