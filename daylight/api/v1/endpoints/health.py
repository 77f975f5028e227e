from fastapi import APIRouter

from daylight.config import settings
from daylight.core.database import db_client
from daylight.schemas.common import HealthCheckResponse
from daylight.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=HealthCheckResponse,
    summary="Service and database health",
    operation_id="get_service_health_status",
)
async def health_check() -> HealthCheckResponse:
    """Reports ``degraded`` rather than failing when Postgres is unreachable."""
    db_health = await db_client.health_check()
    if not db_health["connected"]:
        LOGGER.warning(f"Health check could not reach the database: {db_health['error']}")

    return HealthCheckResponse(
        status="healthy" if db_health["connected"] else "degraded",
        version=settings.app_version,
        service=settings.app_name,
        database="connected" if db_health["connected"] else "disconnected",
        database_latency_ms=db_health.get("latency_ms"),
    )
