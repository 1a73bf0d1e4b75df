"""
CRUD layer for database operations.

Data access as plain functions, isolated from business logic:

    slot = await slot_crud.find_slot(db, slot_id)
"""

from . import base_crud
from . import admin_user_crud
from . import notification_log_crud
from . import slot_crud
from . import tech_request_crud

__all__ = [
    "base_crud",
    "admin_user_crud",
    "notification_log_crud",
    "slot_crud",
    "tech_request_crud",
]
