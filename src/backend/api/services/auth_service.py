"""
Authentication service: username/password login for admins and volunteers.
"""

import logging
from typing import Optional

import bcrypt
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.security import create_access_token
from crud import admin_user_crud
from db.models import AdminUser

logger = logging.getLogger(__name__)

# Compared against when the username does not exist, so both paths cost one bcrypt check
_DUMMY_HASH = bcrypt.hashpw(b"not-a-password", bcrypt.gensalt(rounds=4)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its bcrypt hash.

    Returns:
        True if password matches, False otherwise (including malformed hashes)
    """
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        return False


def hash_password(password: str) -> str:
    """Hash a password using bcrypt with the configured cost factor."""
    salt = bcrypt.gensalt(rounds=settings.security.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


class AuthenticationService:
    """Service for login and token issuing."""

    @staticmethod
    async def authenticate(
        db: AsyncSession, username: str, password: str
    ) -> Optional[AdminUser]:
        """
        Check credentials.

        Returns:
            The active admin, or None for unknown user, wrong password or
            deactivated account
        """
        admin = await admin_user_crud.find_by_username(db, username)
        if admin is None:
            verify_password(password, _DUMMY_HASH)
            logger.info(f"Login failed | Unknown username: {username}")
            return None

        if not verify_password(password, admin.password_hash):
            logger.info(f"Login failed | Wrong password | Admin ID: {admin.id}")
            return None

        if not admin.is_active:
            logger.info(f"Login failed | Inactive account | Admin ID: {admin.id}")
            return None

        logger.info(f"Login succeeded | Admin ID: {admin.id} | Role: {admin.role}")
        return admin

    @staticmethod
    def issue_token(admin: AdminUser) -> str:
        role = getattr(admin.role, "value", admin.role)
        return create_access_token(admin.id, admin.username, role)
