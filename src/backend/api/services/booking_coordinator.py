"""
Keeps slot and request booking fields consistent across status changes and
deletes.

Every method runs inside the caller's transaction and never commits. If a
step raises, the caller's whole unit of work rolls back with it; the one
exception is slot cleanup on completion, which must never block the status
update and is skipped with a warning instead.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging_config import BookingLogger
from crud import slot_crud, tech_request_crud
from db.enums import RequestStatus
from db.models import TechRequest

from api.services.slot_service import SlotService

logger = logging.getLogger(__name__)
booking_logger = BookingLogger("coordinator")

_CLEARED_BOOKING = {"booked_slot_id": None, "scheduled_date": None, "scheduled_time": None}


class BookingCoordinator:
    """Cross-entity effects of request status changes and deletion."""

    @staticmethod
    async def apply_status_change(
        db: AsyncSession, request: TechRequest, new_status: RequestStatus
    ) -> None:
        """Run the slot side effects of moving `request` to `new_status`."""
        if new_status == RequestStatus.CANCELLED:
            await BookingCoordinator.on_cancelled(db, request)
        elif new_status == RequestStatus.COMPLETED:
            await BookingCoordinator.on_completed(db, request)

    @staticmethod
    async def on_cancelled(db: AsyncSession, request: TechRequest) -> None:
        """
        Release the request's slot so it can be booked again, then clear the
        request's own booking fields.
        """
        await BookingCoordinator._release_bound_slot(db, request)
        await tech_request_crud.update_request(db, request, dict(_CLEARED_BOOKING))

    @staticmethod
    async def on_completed(db: AsyncSession, request: TechRequest) -> None:
        """
        Delete the slot of a finished visit.

        The request keeps scheduled_date/scheduled_time as the record of when
        the visit happened; only the slot pointer is cleared. If another
        request still references the slot, or the delete fails, the slot is
        left in place and the completion goes ahead.
        """
        slot_id, request_id = request.booked_slot_id, request.id
        if slot_id is None:
            return

        await tech_request_crud.update_request(db, request, {"booked_slot_id": None})

        remaining = await tech_request_crud.find_requests_by_slot(db, slot_id)
        if remaining:
            booking_logger.slot_delete_skipped(slot_id, [r.id for r in remaining])
            return

        slot = await slot_crud.find_slot_for_update(db, slot_id)
        if slot is None:
            logger.warning(f"Completed request {request_id} pointed at missing slot {slot_id}")
            return

        try:
            async with db.begin_nested():
                await slot_crud.delete_slot(db, slot)
        except SQLAlchemyError as e:
            logger.warning(f"Slot {slot_id} kept after request {request_id} completed: {e}")
            return

        booking_logger.slot_deleted(slot_id, reason=f"request {request_id} completed")

    @staticmethod
    async def on_delete(db: AsyncSession, request: TechRequest) -> None:
        """Release any bound slot, then hard-delete the request row."""
        await BookingCoordinator._release_bound_slot(db, request)
        await tech_request_crud.delete_request(db, request)
        logger.info(f"Request deleted | ID: {request.id}")

    @staticmethod
    async def _release_bound_slot(db: AsyncSession, request: TechRequest) -> None:
        slot_id = request.booked_slot_id
        if slot_id is None:
            return

        slot = await slot_crud.find_slot_for_update(db, slot_id)
        if slot is not None and slot.is_booked:
            await SlotService.release_in_transaction(db, slot_id)
        else:
            logger.warning(
                f"Request {request.id} referenced slot {slot_id} which is "
                f"{'missing' if slot is None else 'not booked'}; clearing pointer only"
            )
            await tech_request_crud.update_request(db, request, dict(_CLEARED_BOOKING))
