"""
Notification log schemas.
"""
from datetime import datetime
from typing import List, Optional

from core.schema_base import HTTPSchemaModel
from db.enums import NotificationStatus, NotificationType


class NotificationLogRead(HTTPSchemaModel):
    id: int
    type: NotificationType
    recipient: str
    message: str
    status: NotificationStatus
    request_id: Optional[int] = None
    sent_at: Optional[datetime] = None
    created_at: datetime


class NotificationLogListResponse(HTTPSchemaModel):
    logs: List[NotificationLogRead]
    total: int
    page: int
    per_page: int
    total_pages: int
