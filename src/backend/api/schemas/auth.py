"""
Login schemas.
"""
from pydantic import Field

from core.schema_base import HTTPSchemaModel

from api.schemas.admin_user import AdminUserRead


class LoginRequest(HTTPSchemaModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=128)


class LoginResponse(HTTPSchemaModel):
    """Bearer token plus the admin it was issued to."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")
    admin: AdminUserRead
