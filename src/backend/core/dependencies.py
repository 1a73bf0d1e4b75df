"""
Authentication and authorization dependencies for FastAPI.

`get_current_principal` turns a bearer token into an explicit Principal that
endpoints pass into every service call; nothing reads role from ambient state.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_session
from core.security import (
    SecurityError,
    decode_token,
    get_admin_id_from_token,
)
from crud import admin_user_crud
from db.enums import AdminRole

from api.services.role_policy import Principal, can_manage_admins, can_manage_slots

# HTTP Bearer security scheme
security = HTTPBearer(auto_error=False)


class AuthenticationError(HTTPException):
    """Custom authentication error."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(HTTPException):
    """Custom authorization error."""

    def __init__(self, detail: str = "Insufficient permissions"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_session),
) -> Principal:
    """Resolve the bearer token to an active admin.

    The admin row is re-read on every request, so deactivation and role
    changes take effect immediately.

    Raises:
        AuthenticationError: missing/invalid/expired token, unknown or inactive admin
    """
    if credentials is None:
        raise AuthenticationError()

    try:
        payload = decode_token(credentials.credentials)
        admin_id = get_admin_id_from_token(payload)
    except SecurityError as e:
        raise AuthenticationError(str(e))

    admin = await admin_user_crud.find_admin(db, admin_id)
    if admin is None:
        raise AuthenticationError("Admin not found")
    if not admin.is_active:
        raise AuthenticationError("Admin account is inactive")

    return Principal(id=admin.id, role=AdminRole(admin.role), username=admin.username)


async def require_system_admin(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """Gate for slot management, admin management and request deletion."""
    if not principal.is_system_admin:
        raise AuthorizationError("System admin role required")
    return principal


async def require_slot_manager(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    if not can_manage_slots(principal.role):
        raise AuthorizationError("Slot management requires the system admin role")
    return principal


async def require_admin_manager(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    if not can_manage_admins(principal.role):
        raise AuthorizationError("Admin management requires the system admin role")
    return principal
