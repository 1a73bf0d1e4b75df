"""
Tech request endpoints.

Public:
- POST /requests: submit a request (rate limited)

Admins and volunteers:
- list, search and view requests
- take a request (assign to self, mark in progress)
- edit a request (fields allowed per role)

System admins:
- delete a request (its slot is released first)

Customer notifications are sent after the change has committed and never
affect the response.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import get_session
from core.dependencies import get_current_principal, require_system_admin
from core.rate_limit import limiter
from db.enums import RequestStatus, UrgencyLevel
from api.schemas.tech_request import (
    TakeRequest,
    TechRequestCreate,
    TechRequestListResponse,
    TechRequestRead,
    TechRequestSubmitted,
    TechRequestUpdate,
)
from api.services.notification_service import (
    NotificationTrigger,
    Notifier,
    get_notifier,
)
from api.services.request_service import RequestService
from api.services.role_policy import Principal, authorize_patch

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=TechRequestSubmitted, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.rate_limit.public_submission)
async def submit_request(
    request: Request,
    request_data: TechRequestCreate,
    db: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Submit a new tech request.

    The request starts pending and unassigned. The customer gets a
    "received" email when SMTP is configured.

    Args:
        request: FastAPI request (used by the rate limiter)
        request_data: Submission form
        db: Database session
        notifier: Email notifier

    Returns:
        TechRequestSubmitted: id, status and creation time

    **Permissions:** Public
    """
    tech_request = await RequestService.create_request(db, request_data)
    await NotificationTrigger.fire(db, notifier, tech_request, RequestStatus.PENDING)
    return tech_request


@router.get("", response_model=TechRequestListResponse)
async def list_requests(
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    urgency_level: Optional[UrgencyLevel] = Query(None, alias="urgencyLevel"),
    assigned_admin_id: Optional[int] = Query(None, alias="assignedAdminId"),
    search: Optional[str] = Query(None, max_length=100),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    page: int = Query(1, ge=1),
    per_page: int = Query(
        settings.pagination.default_page_size,
        ge=1,
        le=settings.pagination.max_page_size,
        alias="perPage",
    ),
    db: AsyncSession = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
):
    """
    List requests, newest first.

    Args:
        status_filter: Only this status
        urgency_level: Only this urgency
        assigned_admin_id: Only requests assigned to this admin
        search: Case-insensitive match on name, phone or description
        date_from: Created on or after (YYYY-MM-DD)
        date_to: Created on or before (YYYY-MM-DD)
        page: Page number (1-indexed)
        per_page: Page size

    **Permissions:** Any authenticated admin
    """
    requests, total = await RequestService.list_requests(
        db,
        status=status_filter,
        urgency_level=urgency_level,
        assigned_admin_id=assigned_admin_id,
        search=search,
        date_from=date_from,
        date_to=date_to,
        page=page,
        per_page=per_page,
    )
    return TechRequestListResponse(
        requests=requests,
        total=total,
        page=page,
        per_page=per_page,
        total_pages=(total + per_page - 1) // per_page,
    )


@router.get("/{request_id}", response_model=TechRequestRead)
async def get_request(
    request_id: int,
    db: AsyncSession = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
):
    """
    Get a request by ID.

    Raises:
        HTTPException 404: request_not_found

    **Permissions:** Any authenticated admin
    """
    return await RequestService.get_request(db, request_id)


@router.patch("/{request_id}", response_model=TechRequestRead)
async def update_request(
    request_id: int,
    update_data: TechRequestUpdate,
    db: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
    principal: Principal = Depends(get_current_principal),
):
    """
    Edit a request.

    Volunteers may change status, notes and schedule of requests that are
    unassigned or assigned to them, and may assign a request to themselves.
    System admins may change every field, including the assignee.

    Moving to cancelled releases the booked slot; moving to completed
    deletes it.

    Raises:
        HTTPException 400: empty update or malformed date/time
        HTTPException 403: fields_forbidden (lists every offending field),
            request_not_assigned, reassign_forbidden
        HTTPException 404: request_not_found, admin_not_found
        HTTPException 409: invalid_transition, request_has_slot

    **Permissions:** Any authenticated admin, fields per role
    """
    patch = authorize_patch(principal, update_data.changes())
    result = await RequestService.update_request(db, request_id, patch)

    if result.status_changed and RequestStatus(result.request.status) == RequestStatus.IN_PROGRESS:
        await NotificationTrigger.fire(db, notifier, result.request, RequestStatus.IN_PROGRESS)

    return result.request


@router.post("/{request_id}/take", response_model=TechRequestRead)
async def take_request(
    request_id: int,
    take_data: Optional[TakeRequest] = None,
    db: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
    principal: Principal = Depends(get_current_principal),
):
    """
    Assign the request to the caller and mark it in progress.

    Raises:
        HTTPException 404: request_not_found
        HTTPException 409: request_already_assigned (volunteers only),
            request_closed

    **Permissions:** Any authenticated admin
    """
    notes = take_data.notes if take_data else None
    tech_request = await RequestService.take_request(db, request_id, principal, notes)
    await NotificationTrigger.fire(db, notifier, tech_request, RequestStatus.IN_PROGRESS)
    return tech_request


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_request(
    request_id: int,
    db: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_system_admin),
):
    """
    Permanently delete a request. A booked slot is released first.

    Raises:
        HTTPException 404: request_not_found

    **Permissions:** System admin only
    """
    await RequestService.delete_request(db, request_id)
    logger.info(f"Request {request_id} deleted by admin {principal.id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
