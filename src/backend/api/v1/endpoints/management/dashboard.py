"""
Dashboard statistics and calendar endpoints for the admin UI.
"""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_session
from core.dependencies import get_current_principal
from api.schemas.dashboard import CalendarEvent, DashboardStats
from api.services.calendar_service import CalendarService
from api.services.request_service import RequestService
from api.services.role_policy import Principal

router = APIRouter()


@router.get("/dashboard", response_model=DashboardStats)
async def get_dashboard(
    db: AsyncSession = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
):
    """
    Request counts per status, slot totals, the five newest requests and
    every request in progress.

    **Permissions:** Any authenticated admin
    """
    return await RequestService.get_dashboard_stats(db)


@router.get("/calendar", response_model=List[CalendarEvent])
async def get_calendar(
    date_from: str = Query(..., alias="dateFrom", description="YYYY-MM-DD, inclusive"),
    date_to: str = Query(..., alias="dateTo", description="YYYY-MM-DD, inclusive"),
    db: AsyncSession = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
):
    """
    Calendar events in a date range.

    System admins see every scheduled visit plus free slots. Volunteers see
    only visits assigned to them.

    Raises:
        HTTPException 400: malformed dates or a range over three months

    **Permissions:** Any authenticated admin
    """
    return await CalendarService.get_events(db, principal, date_from, date_to)
