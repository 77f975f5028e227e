"""Shared API envelope models."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ResponseMeta(BaseModel):
    timestamp: datetime = Field(..., description="Server time the response was built")
    request_id: str = Field(..., description="Correlation id for logs")
    api_version: str = Field("v1", description="API version")


class ApiResponse(BaseModel):
    """Standard success envelope returned by every v1 endpoint."""

    status: bool = Field(True, description="Whether the operation succeeded")
    message: str = Field(..., description="Human-readable summary")
    data: Dict[str, Any] = Field(default_factory=dict, description="Response payload")
    meta: ResponseMeta


class ErrorDetail(BaseModel):
    """Problem details body (RFC 7807)."""

    type: str = Field("about:blank", description="Problem type URI")
    title: str = Field(..., description="Short summary of the problem")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Explanation specific to this occurrence")
    instance: Optional[str] = Field(None, description="Request path")
    request_id: str
    timestamp: datetime


class HealthCheckResponse(BaseModel):
    status: str = Field(default="healthy", examples=["healthy", "degraded"])
    version: str = Field(..., examples=["0.1.0"])
    service: str = Field(..., examples=["Daylight Journal Extraction"])
    database: str = Field(default="unknown", examples=["connected", "disconnected"])
    database_latency_ms: Optional[float] = Field(None, description="Round trip of a SELECT 1")
