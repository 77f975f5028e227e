from fastapi import APIRouter

from daylight.api.v1.endpoints import health, jobs, journal

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["Health"])
api_router.include_router(journal.router, prefix="/journal", tags=["Journal"])
api_router.include_router(jobs.router, prefix="/jobs", tags=["Jobs"])

__all__ = ["api_router"]
