"""Translation of service errors into problem-details HTTP errors."""

from fastapi import HTTPException, Request, status

from daylight.core.exceptions import (
    APIClientError,
    AppError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from daylight.utils.logging import get_logger
from daylight.utils.responses import create_error_detail

LOGGER = get_logger(__name__)

ERROR_STATUS = [
    (ValidationError, status.HTTP_400_BAD_REQUEST, "Invalid Request"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "Not Found"),
    (ConflictError, status.HTTP_409_CONFLICT, "Conflict"),
    (APIClientError, status.HTTP_502_BAD_GATEWAY, "Upstream Service Failed"),
]


def http_error(error: AppError, request: Request, title: str = "Internal Server Error") -> HTTPException:
    for error_type, status_code, error_title in ERROR_STATUS:
        if isinstance(error, error_type):
            break
    else:
        status_code, error_title = status.HTTP_500_INTERNAL_SERVER_ERROR, title
        LOGGER.error(f"{title}: {error}", exc_info=True)

    error_detail = create_error_detail(
        title=error_title,
        status=status_code,
        detail=str(error),
        request=request,
    )
    return HTTPException(status_code=status_code, detail=error_detail.model_dump(mode="json"))
