"""Builders for the v1 success envelope and problem-details errors."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import Request

from daylight.schemas.common import ApiResponse, ErrorDetail, ResponseMeta


def _request_id(request: Optional[Request]) -> str:
    """Id set by the request-id middleware, or a fresh one outside a request."""
    if request is not None:
        return getattr(request.state, "request_id", None) or str(uuid4())
    return str(uuid4())


def _as_data(data: Any) -> Dict[str, Any]:
    if data is None:
        return {}
    if isinstance(data, dict):
        return data
    if hasattr(data, "model_dump"):
        return data.model_dump(mode="json")
    if isinstance(data, list):
        return {"items": [_as_data(item) if hasattr(item, "model_dump") else item for item in data]}
    return {"value": data}


def create_api_response(
    data: Any,
    message: str = "Operation successful",
    status: bool = True,
    request: Optional[Request] = None,
    api_version: str = "v1"
) -> Dict[str, Any]:
    """Wrap ``data`` in the standard envelope, ready to return from a route.

    Pydantic models are dumped in JSON mode so UUIDs and datetimes serialize
    the same way in every endpoint.
    """
    envelope = ApiResponse(
        status=status,
        message=message,
        data=_as_data(data),
        meta=ResponseMeta(
            timestamp=datetime.now(timezone.utc),
            request_id=_request_id(request),
            api_version=api_version,
        ),
    )
    return envelope.model_dump(mode="json")


def create_error_detail(
    title: str,
    status: int,
    detail: str,
    request: Optional[Request] = None,
    instance: Optional[str] = None
) -> ErrorDetail:
    """RFC 7807 body; ``instance`` defaults to the request path."""
    return ErrorDetail(
        title=title,
        status=status,
        detail=detail,
        instance=instance or (request.url.path if request is not None else None),
        request_id=_request_id(request),
        timestamp=datetime.now(timezone.utc),
    )
