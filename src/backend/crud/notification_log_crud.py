"""CRUD operations for the notification log."""
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from crud import base_crud
from db.enums import NotificationStatus, NotificationType
from db.models import NotificationLog


async def create_log(
    db: AsyncSession,
    *,
    recipient: str,
    message: str,
    status: NotificationStatus,
    request_id: Optional[int] = None,
    sent_at: Optional[datetime] = None,
) -> NotificationLog:
    return await base_crud.create(
        db,
        NotificationLog,
        obj_in={
            "type": NotificationType.EMAIL.value,
            "recipient": recipient,
            "message": message,
            "status": status.value,
            "request_id": request_id,
            "sent_at": sent_at,
        },
    )


async def list_logs(
    db: AsyncSession,
    *,
    status: Optional[NotificationStatus] = None,
    page: int = 1,
    per_page: int = 20,
) -> Tuple[List[NotificationLog], int]:
    """Newest attempts first."""
    conditions = []
    if status is not None:
        conditions.append(NotificationLog.status == status.value)

    return await base_crud.find_paginated(
        db,
        NotificationLog,
        page=page,
        per_page=per_page,
        conditions=conditions,
        order_by=[NotificationLog.created_at.desc(), NotificationLog.id.desc()],
    )
