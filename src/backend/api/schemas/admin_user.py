"""
Admin user schemas.
"""
from datetime import datetime

from pydantic import Field

from core.schema_base import HTTPSchemaModel
from db.enums import AdminRole


class AdminUserCreate(HTTPSchemaModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str = Field(..., min_length=8, max_length=128)
    role: AdminRole = AdminRole.VOLUNTEER


class AdminUserRead(HTTPSchemaModel):
    """Admin without credentials."""
    id: int
    username: str
    role: AdminRole
    is_active: bool
    created_at: datetime
    updated_at: datetime
