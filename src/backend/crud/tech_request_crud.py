"""CRUD operations for tech requests."""
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from crud import base_crud
from db.enums import RequestStatus
from db.models import TechRequest, utc_now


async def find_request(
    db: AsyncSession, request_id: int, *, for_update: bool = False
) -> Optional[TechRequest]:
    return await base_crud.find_by_id(db, TechRequest, request_id, for_update=for_update)


async def create_request(db: AsyncSession, data: Dict[str, Any]) -> TechRequest:
    return await base_crud.create(db, TechRequest, obj_in=data)


async def update_request(
    db: AsyncSession, request: TechRequest, changes: Dict[str, Any]
) -> TechRequest:
    return await base_crud.apply_changes(db, request, changes)


async def bind_slot(
    db: AsyncSession, request_id: int, slot_id: int, date: str, start_time: str
) -> bool:
    """
    Point a request at a slot, copying the slot's date and start time.

    Guarded on `booked_slot_id IS NULL` so two concurrent bookings for the
    same request cannot both succeed.

    Returns:
        True if the row was updated
    """
    stmt = (
        update(TechRequest)
        .where(TechRequest.id == request_id, TechRequest.booked_slot_id.is_(None))
        .values(
            booked_slot_id=slot_id,
            scheduled_date=date,
            scheduled_time=start_time,
            updated_at=utc_now(),
        )
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    return result.rowcount == 1


async def find_requests_by_slot(
    db: AsyncSession, slot_id: int, *, for_update: bool = False
) -> List[TechRequest]:
    stmt = select(TechRequest).where(TechRequest.booked_slot_id == slot_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def clear_slot_references(
    db: AsyncSession, slot_id: int, *, keep_schedule: bool = False
) -> List[int]:
    """
    Detach every request that references `slot_id`.

    Args:
        db: Database session
        slot_id: Slot being released or deleted
        keep_schedule: Leave scheduled_date/scheduled_time in place

    Returns:
        IDs of the requests that were detached
    """
    referencing = await find_requests_by_slot(db, slot_id)
    if not referencing:
        return []

    values: Dict[str, Any] = {"booked_slot_id": None, "updated_at": utc_now()}
    if not keep_schedule:
        values.update(scheduled_date=None, scheduled_time=None)

    stmt = (
        update(TechRequest)
        .where(TechRequest.booked_slot_id == slot_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    await db.execute(stmt)

    for request in referencing:
        await db.refresh(request)

    return [request.id for request in referencing]


async def delete_request(db: AsyncSession, request: TechRequest) -> None:
    await base_crud.delete(db, request)


async def list_requests(
    db: AsyncSession,
    *,
    status: Optional[str] = None,
    urgency_level: Optional[str] = None,
    assigned_admin_id: Optional[int] = None,
    search: Optional[str] = None,
    created_from: Optional[datetime] = None,
    created_before: Optional[datetime] = None,
    page: int = 1,
    per_page: int = 20,
) -> Tuple[List[TechRequest], int]:
    """
    Filter, search and paginate requests, newest first.

    `search` matches full_name, phone or problem_description
    case-insensitively.
    """
    conditions = []
    if status is not None:
        conditions.append(TechRequest.status == status)
    if urgency_level is not None:
        conditions.append(TechRequest.urgency_level == urgency_level)
    if assigned_admin_id is not None:
        conditions.append(TechRequest.assigned_admin_id == assigned_admin_id)
    if created_from is not None:
        conditions.append(TechRequest.created_at >= created_from)
    if created_before is not None:
        conditions.append(TechRequest.created_at < created_before)
    if search:
        pattern = f"%{search}%"
        conditions.append(
            or_(
                TechRequest.full_name.ilike(pattern),
                TechRequest.phone.ilike(pattern),
                TechRequest.problem_description.ilike(pattern),
            )
        )

    return await base_crud.find_paginated(
        db,
        TechRequest,
        page=page,
        per_page=per_page,
        conditions=conditions,
        order_by=[TechRequest.created_at.desc(), TechRequest.id.desc()],
    )


async def count_by_status(db: AsyncSession) -> Dict[str, int]:
    """Request counts keyed by every status value (zero when absent)."""
    stmt = select(TechRequest.status, func.count(TechRequest.id)).group_by(TechRequest.status)
    rows = (await db.execute(stmt)).all()

    counts = {status.value: 0 for status in RequestStatus}
    for status, total in rows:
        counts[str(getattr(status, "value", status))] = total
    return counts


async def recent_requests(db: AsyncSession, limit: int = 5) -> List[TechRequest]:
    stmt = (
        select(TechRequest)
        .order_by(TechRequest.created_at.desc(), TechRequest.id.desc())
        .limit(limit)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def requests_with_status(db: AsyncSession, status: RequestStatus) -> List[TechRequest]:
    stmt = (
        select(TechRequest)
        .where(TechRequest.status == status.value)
        .order_by(TechRequest.updated_at.desc(), TechRequest.id.desc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def scheduled_in_range(
    db: AsyncSession,
    date_from: str,
    date_to: str,
    *,
    assigned_admin_id: Optional[int] = None,
) -> List[TechRequest]:
    """Requests with a scheduled_date inside [date_from, date_to]."""
    stmt = select(TechRequest).where(
        TechRequest.scheduled_date.is_not(None),
        TechRequest.scheduled_date >= date_from,
        TechRequest.scheduled_date <= date_to,
    )
    if assigned_admin_id is not None:
        stmt = stmt.where(TechRequest.assigned_admin_id == assigned_admin_id)

    stmt = stmt.order_by(TechRequest.scheduled_date, TechRequest.scheduled_time)
    result = await db.execute(stmt)
    return list(result.scalars().all())
