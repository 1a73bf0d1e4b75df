"""
Notification log endpoint: one row per customer email attempt.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import get_session
from core.dependencies import require_system_admin
from crud import notification_log_crud
from db.enums import NotificationStatus
from api.schemas.notification_log import NotificationLogListResponse
from api.services.role_policy import Principal

router = APIRouter()


@router.get("", response_model=NotificationLogListResponse)
async def list_notification_logs(
    status_filter: Optional[NotificationStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    per_page: int = Query(
        settings.pagination.default_page_size,
        ge=1,
        le=settings.pagination.max_page_size,
        alias="perPage",
    ),
    db: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_system_admin),
):
    """
    Notification attempts, newest first.

    **Permissions:** System admin only
    """
    logs, total = await notification_log_crud.list_logs(
        db, status=status_filter, page=page, per_page=per_page
    )
    return NotificationLogListResponse(
        logs=logs,
        total=total,
        page=page,
        per_page=per_page,
        total_pages=(total + per_page - 1) // per_page,
    )
