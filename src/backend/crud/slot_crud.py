"""CRUD operations for available visit slots."""
from typing import List, Optional, Tuple

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from crud import base_crud
from db.models import AvailableSlot, utc_now


async def find_slot(db: AsyncSession, slot_id: int) -> Optional[AvailableSlot]:
    return await base_crud.find_by_id(db, AvailableSlot, slot_id)


async def find_slot_for_update(db: AsyncSession, slot_id: int) -> Optional[AvailableSlot]:
    """
    Re-read a slot inside the current transaction and lock its row.

    Backends without row locks (SQLite) ignore the lock; callers still
    flip `is_booked` through `mark_slot_booked`, whose guarded UPDATE
    detects a lost race.
    """
    return await base_crud.find_by_id(db, AvailableSlot, slot_id, for_update=True)


async def find_slot_by_times(
    db: AsyncSession, date: str, start_time: str, end_time: str
) -> Optional[AvailableSlot]:
    """Find a slot with exactly this (date, start_time, end_time) triple."""
    return await base_crud.find_one(
        db,
        AvailableSlot,
        filters={"date": date, "start_time": start_time, "end_time": end_time},
    )


async def create_slot(
    db: AsyncSession, date: str, start_time: str, end_time: str
) -> AvailableSlot:
    return await base_crud.create(
        db,
        AvailableSlot,
        obj_in={
            "date": date,
            "start_time": start_time,
            "end_time": end_time,
            "is_booked": False,
        },
    )


async def mark_slot_booked(db: AsyncSession, slot_id: int, is_booked: bool) -> bool:
    """
    Flip `is_booked` only if it currently holds the opposite value.

    Args:
        db: Database session
        slot_id: Slot to update
        is_booked: New value

    Returns:
        True if this call changed the row, False if another transaction got
        there first (or the slot is gone)
    """
    stmt = (
        update(AvailableSlot)
        .where(AvailableSlot.id == slot_id, AvailableSlot.is_booked == (not is_booked))
        .values(is_booked=is_booked, updated_at=utc_now())
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    return result.rowcount == 1


async def delete_slot(db: AsyncSession, slot: AvailableSlot) -> None:
    await base_crud.delete(db, slot)


async def list_slots(
    db: AsyncSession,
    *,
    date: Optional[str] = None,
    is_booked: Optional[bool] = None,
    page: int = 1,
    per_page: int = 20,
) -> Tuple[List[AvailableSlot], int]:
    """
    List slots ordered by date then start time.

    Returns:
        Tuple of (slots on this page, total matching)
    """
    conditions = []
    if date is not None:
        conditions.append(AvailableSlot.date == date)
    if is_booked is not None:
        conditions.append(AvailableSlot.is_booked == is_booked)

    return await base_crud.find_paginated(
        db,
        AvailableSlot,
        page=page,
        per_page=per_page,
        conditions=conditions,
        order_by=[AvailableSlot.date, AvailableSlot.start_time],
    )


async def list_available_slots(
    db: AsyncSession,
    *,
    date: Optional[str] = None,
    date_from: Optional[str] = None,
) -> List[AvailableSlot]:
    """Unbooked slots, optionally on one date or from a date onwards."""
    stmt = select(AvailableSlot).where(AvailableSlot.is_booked.is_(False))
    if date is not None:
        stmt = stmt.where(AvailableSlot.date == date)
    if date_from is not None:
        stmt = stmt.where(AvailableSlot.date >= date_from)

    stmt = stmt.order_by(AvailableSlot.date, AvailableSlot.start_time)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_unbooked_in_range(
    db: AsyncSession, date_from: str, date_to: str
) -> List[AvailableSlot]:
    stmt = (
        select(AvailableSlot)
        .where(
            AvailableSlot.is_booked.is_(False),
            AvailableSlot.date >= date_from,
            AvailableSlot.date <= date_to,
        )
        .order_by(AvailableSlot.date, AvailableSlot.start_time)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def count_slots(db: AsyncSession) -> Tuple[int, int]:
    """
    Returns:
        Tuple of (total slots, booked slots)
    """
    stmt = select(
        func.count(AvailableSlot.id),
        func.sum(case((AvailableSlot.is_booked.is_(True), 1), else_=0)),
    )
    total, booked = (await db.execute(stmt)).one()
    return total or 0, booked or 0
