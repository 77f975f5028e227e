"""FastAPI application for journal submission and extraction status."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

from daylight.api.v1.router import api_router
from daylight.config import settings
from daylight.core.database import close_database, init_database
from daylight.core.temporal_client import close_temporal_client
from daylight.utils.logging import get_logger
from daylight.utils.responses import create_error_detail

LOGGER = get_logger(__name__, level=settings.log_level)


class RootResponse(BaseModel):
    message: str = Field(..., description="Service status message")
    version: str = Field(..., description="Running application version")
    docs: str = Field(..., description="Path to the interactive API docs")
    health: str = Field(..., description="Path to the health check endpoint")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    LOGGER.info(
        f"Starting {settings.app_name} {settings.app_version}",
        extra={"environment": settings.environment, "llm_provider": settings.llm.provider},
    )
    if not settings.supabase.jwt_secret:
        LOGGER.error("SUPABASE_JWT_SECRET is missing; every request will be rejected")

    # The API still serves health checks while Postgres is down.
    try:
        await init_database()
    except (SQLAlchemyError, OSError) as e:
        LOGGER.error(f"Database unreachable at startup: {e}")

    yield

    LOGGER.info("Shutting down")
    await close_temporal_client()
    await close_database()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Turns custody journal entries into structured timeline events",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request.state.request_id = request.headers.get("X-Request-ID") or str(uuid4())
    response = await call_next(request)
    response.headers["X-Request-ID"] = request.state.request_id
    return response


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return body validation failures as problem details, keeping the field errors."""
    problem = create_error_detail(
        title="Invalid Request Body",
        status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail="; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        ),
        request=request,
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": problem.model_dump(mode="json")},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Idempotency-Key", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)

app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get(
    "/",
    response_model=RootResponse,
    tags=["Root"],
    summary="Root endpoint",
    operation_id="get_public_root_metadata",
)
async def root() -> RootResponse:
    return RootResponse(
        message="Journal extraction API is running",
        version=settings.app_version,
        docs="/docs",
        health=f"{settings.api_v1_prefix}/health",
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "daylight.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
