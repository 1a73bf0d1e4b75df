"""
Slot allocation: book, release, delete and create visit slots.

Every public operation runs as one transaction. Slot state is always re-read
inside that transaction and `is_booked` is only ever flipped through a
guarded UPDATE, so two admins racing for the same slot end with exactly one
booking and one Conflict.

Locks are taken request rows first, then the slot, matching the order of
request edits that go through the booking coordinator.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.decorators import log_database_operation, transactional_database_operation
from core.exceptions import ConflictError, InvalidInputError, NotFoundError
from core.logging_config import BookingLogger
from core.metrics import track_booking_operation
from core.validation import check_date, check_slot_window
from crud import slot_crud, tech_request_crud
from db.enums import RequestStatus
from db.models import AvailableSlot, TechRequest

logger = logging.getLogger(__name__)
booking_logger = BookingLogger("slots")


@dataclass
class BookingResult:
    """Both sides of a successful booking, as committed."""

    slot: AvailableSlot
    request: TechRequest


@dataclass
class ReleaseResult:
    slot: AvailableSlot
    cleared_request_ids: List[int]


@dataclass
class BulkCreateResult:
    created: List[AvailableSlot]
    skipped: int


class SlotService:
    """Service for the slot side of bookings."""

    @staticmethod
    @track_booking_operation("book_slot")
    @transactional_database_operation("book_slot")
    async def book_slot(db: AsyncSession, slot_id: int, request_id: int) -> BookingResult:
        """
        Bind a free slot to a request that holds no slot.

        Args:
            db: Database session
            slot_id: Slot to book
            request_id: Request receiving the slot

        Returns:
            BookingResult with the booked slot and the updated request

        Raises:
            NotFoundError: request_not_found / slot_not_found
            ConflictError: request_has_slot, request_closed, slot_already_booked
        """
        request = await tech_request_crud.find_request(db, request_id, for_update=True)
        if request is None:
            raise NotFoundError("request_not_found")
        if request.booked_slot_id is not None:
            raise ConflictError("request_has_slot")
        if RequestStatus(request.status).is_terminal:
            raise ConflictError("request_closed")

        slot = await slot_crud.find_slot_for_update(db, slot_id)
        if slot is None:
            raise NotFoundError("slot_not_found")
        if slot.is_booked:
            raise ConflictError("slot_already_booked")

        # Lost the race between our read and our write
        if not await slot_crud.mark_slot_booked(db, slot_id, True):
            raise ConflictError("slot_already_booked")

        if not await tech_request_crud.bind_slot(
            db, request_id, slot_id, slot.date, slot.start_time
        ):
            raise ConflictError("request_has_slot")

        await db.refresh(slot)
        await db.refresh(request)

        booking_logger.slot_booked(slot.id, request.id, slot.date, slot.start_time)
        return BookingResult(slot=slot, request=request)

    @staticmethod
    @track_booking_operation("release_slot")
    @transactional_database_operation("release_slot")
    async def release_slot(db: AsyncSession, slot_id: int) -> ReleaseResult:
        """
        Free a booked slot and detach every request that references it.

        Raises:
            NotFoundError: slot_not_found
            ConflictError: slot_not_booked
        """
        return await SlotService.release_in_transaction(db, slot_id)

    @staticmethod
    async def release_in_transaction(db: AsyncSession, slot_id: int) -> ReleaseResult:
        """
        Release step without its own commit, for callers already inside a
        transaction (the booking coordinator).
        """
        await tech_request_crud.find_requests_by_slot(db, slot_id, for_update=True)
        slot = await slot_crud.find_slot_for_update(db, slot_id)
        if slot is None:
            raise NotFoundError("slot_not_found")
        if not slot.is_booked:
            raise ConflictError("slot_not_booked")

        cleared = await tech_request_crud.clear_slot_references(db, slot_id)

        if not await slot_crud.mark_slot_booked(db, slot_id, False):
            raise ConflictError("slot_not_booked")

        await db.refresh(slot)
        booking_logger.slot_released(slot_id, cleared)
        return ReleaseResult(slot=slot, cleared_request_ids=cleared)

    @staticmethod
    @track_booking_operation("delete_slot")
    @transactional_database_operation("delete_slot")
    async def delete_slot(db: AsyncSession, slot_id: int) -> None:
        """
        Hard-delete a slot that no request is holding.

        Raises:
            NotFoundError: slot_not_found
            ConflictError: slot_in_use when the slot is booked and referenced
        """
        referencing = await tech_request_crud.find_requests_by_slot(db, slot_id, for_update=True)
        slot = await slot_crud.find_slot_for_update(db, slot_id)
        if slot is None:
            raise NotFoundError("slot_not_found")

        if slot.is_booked and referencing:
            raise ConflictError("slot_in_use")

        if referencing:
            # Unbooked but still pointed at: drop the stale pointers with it
            await tech_request_crud.clear_slot_references(db, slot_id)

        await slot_crud.delete_slot(db, slot)
        booking_logger.slot_deleted(slot_id)

    @staticmethod
    @track_booking_operation("create_slot")
    @transactional_database_operation("create_slot")
    async def create_slot(
        db: AsyncSession, date: str, start_time: str, end_time: str
    ) -> AvailableSlot:
        """
        Create one unbooked slot.

        Raises:
            InvalidInputError: bad date/time format or end_time <= start_time
            ConflictError: slot_exists for an identical (date, start, end)
        """
        date, start_time, end_time = check_slot_window(date, start_time, end_time)

        if await slot_crud.find_slot_by_times(db, date, start_time, end_time):
            raise ConflictError("slot_exists")

        try:
            slot = await slot_crud.create_slot(db, date, start_time, end_time)
        except IntegrityError as exc:
            # A concurrent create inserted the same window first
            raise ConflictError("slot_exists") from exc

        logger.info(f"Slot created | ID: {slot.id} | {date} {start_time}-{end_time}")
        return slot

    @staticmethod
    @track_booking_operation("bulk_create_slots")
    @transactional_database_operation("bulk_create_slots")
    async def bulk_create_slots(
        db: AsyncSession, dates: List[str], start_time: str, end_time: str
    ) -> BulkCreateResult:
        """
        Create one slot per date with the same times.

        Windows that already exist (or repeat within `dates`) are skipped
        rather than rejected; the whole batch is still one transaction.

        Raises:
            InvalidInputError: empty_dates, or any bad date/time
            ConflictError: slot_exists if a concurrent create races this batch
        """
        if not dates:
            raise InvalidInputError("empty_dates", fields=["dates"])

        validated = []
        for value in dates:
            window = check_slot_window(value, start_time, end_time)
            if window not in validated:
                validated.append(window)

        created: List[AvailableSlot] = []
        skipped = len(dates) - len(validated)

        try:
            for date, start, end in validated:
                if await slot_crud.find_slot_by_times(db, date, start, end):
                    skipped += 1
                    continue
                created.append(await slot_crud.create_slot(db, date, start, end))
        except IntegrityError as exc:
            raise ConflictError("slot_exists") from exc

        logger.info(f"Bulk slot creation | Created: {len(created)} | Skipped: {skipped}")
        return BulkCreateResult(created=created, skipped=skipped)

    @staticmethod
    @log_database_operation("slot listing")
    async def list_slots(
        db: AsyncSession,
        *,
        date: Optional[str] = None,
        is_booked: Optional[bool] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Tuple[List[AvailableSlot], int]:
        """
        Page through all slots, optionally filtered by date and booked flag.

        Returns:
            Tuple of (slots, total)
        """
        if date is not None:
            check_date(date)
        return await slot_crud.list_slots(
            db, date=date, is_booked=is_booked, page=page, per_page=per_page
        )

    @staticmethod
    @log_database_operation("available slot listing")
    async def list_available_slots(
        db: AsyncSession, date: Optional[str] = None, date_from: Optional[str] = None
    ) -> List[AvailableSlot]:
        """Unbooked slots ordered by date then start time."""
        if date is not None:
            check_date(date)
        if date_from is not None:
            check_date(date_from, "date_from")
        return await slot_crud.list_available_slots(db, date=date, date_from=date_from)

    @staticmethod
    async def get_slot(db: AsyncSession, slot_id: int) -> AvailableSlot:
        slot = await slot_crud.find_slot(db, slot_id)
        if slot is None:
            raise NotFoundError("slot_not_found")
        return slot
