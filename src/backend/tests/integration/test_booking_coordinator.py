"""
Integration tests for the booking coordinator.

Tests:
- Cancelling a booked request releases its slot
- Completing a booked request deletes its slot, keeping the visit date
- A failed slot delete leaves the slot and still completes the request
- Deleting a booked request releases its slot first
- Status changes without a slot leave slots alone
"""

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crud import slot_crud, tech_request_crud
from db.enums import RequestStatus
from api.services.request_service import RequestService
from api.services.role_policy import authorize_patch
from api.services.slot_service import SlotService
from tests.factories import SlotFactory, TechRequestFactory


async def _booked_pair(db: AsyncSession, status: RequestStatus = RequestStatus.IN_PROGRESS):
    slot = SlotFactory.create(date="2025-03-10", start_time="10:00", end_time="11:00")
    request = TechRequestFactory.create(status=status)
    db.add_all([slot, request])
    await db.commit()
    await db.refresh(slot)
    await db.refresh(request)

    await SlotService.book_slot(db, slot.id, request.id)
    return slot.id, request.id


async def _reload(db: AsyncSession, slot_id: int, request_id: int):
    db.expire_all()
    return await slot_crud.find_slot(db, slot_id), await tech_request_crud.find_request(db, request_id)


class TestCancel:
    @pytest.mark.asyncio
    async def test_cancel_releases_slot(self, db_session, admin_principal):
        slot_id, request_id = await _booked_pair(db_session)

        result = await RequestService.update_request(
            db_session,
            request_id,
            authorize_patch(admin_principal, {"status": RequestStatus.CANCELLED}),
        )

        assert result.request.status == RequestStatus.CANCELLED
        slot, request = await _reload(db_session, slot_id, request_id)
        assert slot.is_booked is False
        assert request.booked_slot_id is None
        assert request.scheduled_date is None
        assert request.scheduled_time is None

    @pytest.mark.asyncio
    async def test_cancelled_slot_is_bookable_again(self, db_session, admin_principal):
        slot_id, request_id = await _booked_pair(db_session)
        await RequestService.update_request(
            db_session,
            request_id,
            authorize_patch(admin_principal, {"status": RequestStatus.CANCELLED}),
        )
        other = TechRequestFactory.create()
        db_session.add(other)
        await db_session.commit()
        await db_session.refresh(other)

        result = await SlotService.book_slot(db_session, slot_id, other.id)

        assert result.slot.is_booked is True
        available = await SlotService.list_available_slots(db_session)
        assert slot_id not in [slot.id for slot in available]

    @pytest.mark.asyncio
    async def test_cancel_ignores_schedule_in_same_patch(self, db_session, admin_principal):
        _, request_id = await _booked_pair(db_session)

        result = await RequestService.update_request(
            db_session,
            request_id,
            authorize_patch(
                admin_principal,
                {"status": RequestStatus.CANCELLED, "scheduled_date": "2025-05-05"},
            ),
        )

        assert result.request.scheduled_date is None


class TestComplete:
    @pytest.mark.asyncio
    async def test_complete_deletes_slot_and_keeps_visit_date(self, db_session, volunteer_principal):
        slot_id, request_id = await _booked_pair(db_session)

        result = await RequestService.update_request(
            db_session,
            request_id,
            authorize_patch(volunteer_principal, {"status": RequestStatus.COMPLETED}),
        )

        assert result.request.status == RequestStatus.COMPLETED
        slot, request = await _reload(db_session, slot_id, request_id)
        assert slot is None
        assert request.booked_slot_id is None
        assert request.scheduled_date == "2025-03-10"
        assert request.scheduled_time == "10:00"

    @pytest.mark.asyncio
    async def test_complete_without_slot(self, db_session, admin_principal):
        spare = SlotFactory.create()
        request = TechRequestFactory.create(status=RequestStatus.IN_PROGRESS)
        db_session.add_all([spare, request])
        await db_session.commit()
        await db_session.refresh(spare)
        await db_session.refresh(request)

        await RequestService.update_request(
            db_session,
            request.id,
            authorize_patch(admin_principal, {"status": RequestStatus.COMPLETED}),
        )

        spare, _ = await _reload(db_session, spare.id, request.id)
        assert spare is not None
        assert spare.is_booked is False

    @pytest.mark.asyncio
    async def test_failed_slot_delete_does_not_block_completion(
        self, db_session, admin_principal, monkeypatch
    ):
        slot_id, request_id = await _booked_pair(db_session)

        async def failing_delete(db, slot):
            raise SQLAlchemyError("slot row locked")

        monkeypatch.setattr(slot_crud, "delete_slot", failing_delete)

        result = await RequestService.update_request(
            db_session,
            request_id,
            authorize_patch(admin_principal, {"status": RequestStatus.COMPLETED}),
        )

        assert result.request.status == RequestStatus.COMPLETED
        slot, request = await _reload(db_session, slot_id, request_id)
        assert slot is not None
        assert request.status == RequestStatus.COMPLETED
        assert request.booked_slot_id is None
        assert request.scheduled_date == "2025-03-10"


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_releases_slot_first(self, db_session):
        slot_id, request_id = await _booked_pair(db_session)

        await RequestService.delete_request(db_session, request_id)

        slot, request = await _reload(db_session, slot_id, request_id)
        assert request is None
        assert slot.is_booked is False

    @pytest.mark.asyncio
    async def test_delete_unbooked_request(self, db_session):
        request = TechRequestFactory.create()
        db_session.add(request)
        await db_session.commit()
        await db_session.refresh(request)

        await RequestService.delete_request(db_session, request.id)

        db_session.expire_all()
        assert await tech_request_crud.find_request(db_session, request.id) is None


class TestNonTerminalChanges:
    @pytest.mark.asyncio
    async def test_back_to_pending_keeps_booking(self, db_session, admin_principal):
        slot_id, request_id = await _booked_pair(db_session)

        await RequestService.update_request(
            db_session,
            request_id,
            authorize_patch(admin_principal, {"status": RequestStatus.PENDING}),
        )

        slot, request = await _reload(db_session, slot_id, request_id)
        assert slot.is_booked is True
        assert request.booked_slot_id == slot_id
