"""
Visit slot endpoints.

**Key Features:**
- Public listing of free slots for the booking form
- Slot creation, one at a time or one per date (system admins)
- Booking a slot for a request and releasing it again
- Deleting slots that no request holds
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import get_session
from core.dependencies import get_current_principal, require_slot_manager
from api.schemas.slot import (
    BookingResponse,
    SlotBook,
    SlotBulkCreate,
    SlotBulkCreateResponse,
    SlotCreate,
    SlotListResponse,
    SlotRead,
    SlotReleaseResponse,
)
from api.services.role_policy import Principal
from api.services.slot_service import SlotService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=SlotListResponse)
async def list_slots(
    date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    is_booked: Optional[bool] = Query(None, alias="isBooked"),
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
    List all slots ordered by date and start time.

    **Permissions:** Any authenticated admin
    """
    slots, total = await SlotService.list_slots(
        db, date=date, is_booked=is_booked, page=page, per_page=per_page
    )
    return SlotListResponse(
        slots=slots,
        total=total,
        page=page,
        per_page=per_page,
        total_pages=(total + per_page - 1) // per_page,
    )


@router.get("/available", response_model=List[SlotRead])
async def list_available_slots(
    date: Optional[str] = Query(None, description="Only this day (YYYY-MM-DD)"),
    date_from: Optional[str] = Query(None, alias="dateFrom", description="This day or later"),
    db: AsyncSession = Depends(get_session),
):
    """
    Free slots, earliest first.

    **Permissions:** Public
    """
    return await SlotService.list_available_slots(db, date=date, date_from=date_from)


@router.post("", response_model=SlotRead, status_code=status.HTTP_201_CREATED)
async def create_slot(
    slot_data: SlotCreate,
    db: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_slot_manager),
):
    """
    Create one slot.

    Raises:
        HTTPException 409: slot_exists for an identical date and times

    **Permissions:** System admin only
    """
    return await SlotService.create_slot(
        db, slot_data.date, slot_data.start_time, slot_data.end_time
    )


@router.post("/bulk", response_model=SlotBulkCreateResponse, status_code=status.HTTP_201_CREATED)
async def bulk_create_slots(
    bulk_data: SlotBulkCreate,
    db: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_slot_manager),
):
    """
    Create one slot per date with the same times. Existing windows are skipped.

    **Permissions:** System admin only
    """
    result = await SlotService.bulk_create_slots(
        db, bulk_data.dates, bulk_data.start_time, bulk_data.end_time
    )
    return SlotBulkCreateResponse(
        created=len(result.created),
        skipped=result.skipped,
        slots=result.created,
    )


@router.put("/{slot_id}/book", response_model=BookingResponse)
async def book_slot(
    slot_id: int,
    book_data: SlotBook,
    db: AsyncSession = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
):
    """
    Book a free slot for a request. The request's schedule is set to the
    slot's date and start time.

    Raises:
        HTTPException 404: slot_not_found, request_not_found
        HTTPException 409: slot_already_booked, request_has_slot,
            request_closed, store_timeout

    **Permissions:** Any authenticated admin
    """
    result = await SlotService.book_slot(db, slot_id, book_data.request_id)
    logger.info(
        f"Slot {slot_id} booked for request {book_data.request_id} by admin {principal.id}"
    )
    return BookingResponse(slot=result.slot, request=result.request)


@router.put("/{slot_id}/release", response_model=SlotReleaseResponse)
async def release_slot(
    slot_id: int,
    db: AsyncSession = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
):
    """
    Free a booked slot. Requests holding it lose their slot and schedule.

    Raises:
        HTTPException 404: slot_not_found
        HTTPException 409: slot_not_booked

    **Permissions:** Any authenticated admin
    """
    result = await SlotService.release_slot(db, slot_id)
    return SlotReleaseResponse(
        slot=result.slot,
        cleared_request_ids=result.cleared_request_ids,
        message=f"Slot released, {len(result.cleared_request_ids)} request(s) unscheduled",
    )


@router.delete("/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_slot(
    slot_id: int,
    db: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_slot_manager),
):
    """
    Delete a slot.

    Raises:
        HTTPException 404: slot_not_found
        HTTPException 409: slot_in_use while a request holds it

    **Permissions:** System admin only
    """
    await SlotService.delete_slot(db, slot_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
