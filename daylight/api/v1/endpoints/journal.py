from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from daylight.api.v1.errors import http_error
from daylight.core.auth import get_current_user_id
from daylight.core.database import get_async_session as get_session
from daylight.core.exceptions import AppError
from daylight.schemas.common import ApiResponse
from daylight.schemas.journal import (
    EventListResponse,
    EventResponse,
    JournalEntryResponse,
    JournalSubmitRequest,
)
from daylight.services.journal_service import JournalService
from daylight.utils.logging import get_logger
from daylight.utils.responses import create_api_response

LOGGER = get_logger(__name__)

router = APIRouter()


async def get_journal_service(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> JournalService:
    return JournalService(db_session)


@router.post(
    "",
    response_model=ApiResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Submit a journal entry for extraction",
    operation_id="submit_journal_entry",
)
async def submit_journal_entry(
    request: Request,
    payload: JournalSubmitRequest,
    idempotency_key: Annotated[Optional[str], Header(alias="Idempotency-Key")] = None,
    user_id: Annotated[UUID, Depends(get_current_user_id)] = None,
    journal_service: Annotated[JournalService, Depends(get_journal_service)] = None,
) -> ApiResponse:
    """Create a journal entry and queue event extraction."""
    try:
        result = await journal_service.submit(user_id, payload, idempotency_key=idempotency_key)
    except AppError as e:
        raise http_error(e, request, title="Journal Submission Failed") from e

    return create_api_response(
        data=result,
        message="Existing extraction returned" if result.deduplicated else "Extraction queued",
        request=request,
    )


@router.post(
    "/{journal_entry_id}/reprocess",
    response_model=ApiResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Redo extraction for a journal entry",
    operation_id="reprocess_journal_entry",
)
async def reprocess_journal_entry(
    request: Request,
    journal_entry_id: UUID,
    user_id: Annotated[UUID, Depends(get_current_user_id)] = None,
    journal_service: Annotated[JournalService, Depends(get_journal_service)] = None,
) -> ApiResponse:
    """Delete the entry's events and run extraction again."""
    try:
        result = await journal_service.reprocess(user_id, journal_entry_id)
    except AppError as e:
        raise http_error(e, request, title="Reprocess Failed") from e

    return create_api_response(data=result, message="Extraction queued", request=request)


@router.post(
    "/{journal_entry_id}/cancel",
    response_model=ApiResponse,
    summary="Cancel a journal entry",
    operation_id="cancel_journal_entry",
)
async def cancel_journal_entry(
    request: Request,
    journal_entry_id: UUID,
    user_id: Annotated[UUID, Depends(get_current_user_id)] = None,
    journal_service: Annotated[JournalService, Depends(get_journal_service)] = None,
) -> ApiResponse:
    try:
        entry = await journal_service.cancel(user_id, journal_entry_id)
    except AppError as e:
        raise http_error(e, request, title="Cancel Failed") from e

    return create_api_response(
        data=JournalEntryResponse.model_validate(entry),
        message="Journal entry cancelled",
        request=request,
    )


@router.get(
    "/{journal_entry_id}",
    response_model=ApiResponse,
    summary="Get a journal entry",
    operation_id="get_journal_entry",
)
async def get_journal_entry(
    request: Request,
    journal_entry_id: UUID,
    user_id: Annotated[UUID, Depends(get_current_user_id)] = None,
    journal_service: Annotated[JournalService, Depends(get_journal_service)] = None,
) -> ApiResponse:
    try:
        entry = await journal_service.get_entry(user_id, journal_entry_id)
    except AppError as e:
        raise http_error(e, request) from e

    return create_api_response(
        data=JournalEntryResponse.model_validate(entry),
        message="Journal entry retrieved successfully",
        request=request,
    )


@router.get(
    "/{journal_entry_id}/events",
    response_model=ApiResponse,
    summary="List events extracted from a journal entry",
    operation_id="list_journal_entry_events",
)
async def list_journal_entry_events(
    request: Request,
    journal_entry_id: UUID,
    user_id: Annotated[UUID, Depends(get_current_user_id)] = None,
    journal_service: Annotated[JournalService, Depends(get_journal_service)] = None,
) -> ApiResponse:
    try:
        events = await journal_service.list_events(user_id, journal_entry_id)
    except AppError as e:
        raise http_error(e, request) from e

    data = EventListResponse(
        total=len(events),
        events=[EventResponse.model_validate(event) for event in events],
    )
    return create_api_response(
        data=data,
        message="Events retrieved successfully" if events else "No events found",
        request=request,
    )
