from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request

from daylight.api.v1.endpoints.journal import get_journal_service
from daylight.api.v1.errors import http_error
from daylight.core.auth import get_current_user_id
from daylight.core.exceptions import AppError
from daylight.schemas.common import ApiResponse
from daylight.schemas.journal import JobResponse
from daylight.services.journal_service import JournalService
from daylight.utils.responses import create_api_response

router = APIRouter()


@router.get(
    "/{job_id}",
    response_model=ApiResponse,
    summary="Get extraction job status",
    operation_id="get_job",
)
async def get_job(
    request: Request,
    job_id: UUID,
    user_id: Annotated[UUID, Depends(get_current_user_id)] = None,
    journal_service: Annotated[JournalService, Depends(get_journal_service)] = None,
) -> ApiResponse:
    """Job status, including the persistence report once completed."""
    try:
        job = await journal_service.get_job(user_id, job_id)
    except AppError as e:
        raise http_error(e, request) from e

    return create_api_response(
        data=JobResponse.model_validate(job),
        message="Job retrieved successfully",
        request=request,
    )
