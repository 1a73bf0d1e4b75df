"""
Authentication endpoints.

Admins and volunteers log in with username + password and receive a JWT
bearer token. The token carries the admin id; role and active state are
re-read from the database on every authenticated request.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import get_session
from core.dependencies import AuthenticationError, get_current_principal
from core.rate_limit import limiter
from crud import admin_user_crud
from api.schemas.admin_user import AdminUserRead
from api.schemas.auth import LoginRequest, LoginResponse
from api.services.auth_service import AuthenticationService
from api.services.role_policy import Principal

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.rate_limit.login)
async def login(
    request: Request,
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_session),
) -> LoginResponse:
    """
    Username/password login.

    Args:
        request: FastAPI request (used by the rate limiter)
        login_data: Credentials
        db: Database session

    Returns:
        LoginResponse with the access token and the admin

    Raises:
        HTTPException 401: Unknown username, wrong password or inactive account
        HTTPException 429: Too many attempts from this address

    **Permissions:** Public
    """
    admin = await AuthenticationService.authenticate(
        db, login_data.username, login_data.password
    )
    if admin is None:
        raise AuthenticationError("Invalid username or password")

    return LoginResponse(
        access_token=AuthenticationService.issue_token(admin),
        expires_in=settings.security.access_token_expire_minutes * 60,
        admin=AdminUserRead.model_validate(admin),
    )


@router.get("/me", response_model=AdminUserRead)
async def get_me(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
):
    """
    The admin behind the bearer token.

    **Permissions:** Any authenticated admin
    """
    return await admin_user_crud.find_admin(db, principal.id)
