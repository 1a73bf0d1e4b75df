"""
Admin management: create, list, deactivate and delete admin principals.
"""

import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.decorators import transactional_database_operation
from core.exceptions import ConflictError, NotFoundError
from crud import admin_user_crud
from db.enums import AdminRole
from db.models import AdminUser

from api.services.auth_service import hash_password

logger = logging.getLogger(__name__)


class AdminUserService:
    """Service for admin principal management."""

    @staticmethod
    @transactional_database_operation("create_admin")
    async def create_admin(
        db: AsyncSession, username: str, password: str, role: AdminRole
    ) -> AdminUser:
        """
        Create an active admin.

        Raises:
            ConflictError: admin_exists for a taken username
        """
        if await admin_user_crud.find_by_username(db, username):
            raise ConflictError("admin_exists", fields=["username"])

        try:
            admin = await admin_user_crud.create_admin(db, username, hash_password(password), role)
        except IntegrityError as exc:
            raise ConflictError("admin_exists", fields=["username"]) from exc

        logger.info(f"Admin created | ID: {admin.id} | Username: {username} | Role: {role.value}")
        return admin

    @staticmethod
    async def list_admins(db: AsyncSession) -> List[AdminUser]:
        return await admin_user_crud.list_admins(db)

    @staticmethod
    @transactional_database_operation("deactivate_admin")
    async def deactivate_admin(db: AsyncSession, admin_id: int) -> AdminUser:
        """
        Soft delete: the admin can no longer log in or be assigned.
        Requests already assigned keep their assignee.

        Raises:
            NotFoundError: admin_not_found
        """
        admin = await admin_user_crud.find_admin(db, admin_id)
        if admin is None:
            raise NotFoundError("admin_not_found")

        await admin_user_crud.set_active(db, admin, False)
        logger.info(f"Admin deactivated | ID: {admin_id}")
        return admin

    @staticmethod
    @transactional_database_operation("delete_admin")
    async def delete_admin(db: AsyncSession, admin_id: int) -> None:
        """
        Hard delete, only for admins with no assigned requests.

        Raises:
            NotFoundError: admin_not_found
            ConflictError: admin_has_requests
        """
        admin = await admin_user_crud.find_admin(db, admin_id)
        if admin is None:
            raise NotFoundError("admin_not_found")

        assigned = await admin_user_crud.count_assigned_requests(db, admin_id)
        if assigned:
            raise ConflictError(
                "admin_has_requests",
                f"Admin still has {assigned} assigned request(s); deactivate instead",
            )

        await admin_user_crud.delete_admin(db, admin)
        logger.info(f"Admin deleted | ID: {admin_id}")

    @staticmethod
    @transactional_database_operation("ensure_bootstrap_admin")
    async def ensure_bootstrap_admin(db: AsyncSession, username: str, password: str) -> bool:
        """
        Create the first SYSTEM_ADMIN if no system admin exists yet.

        Returns:
            True if an admin was created
        """
        if await admin_user_crud.count_admins(db, AdminRole.SYSTEM_ADMIN):
            return False
        if await admin_user_crud.find_by_username(db, username):
            return False

        await admin_user_crud.create_admin(
            db, username, hash_password(password), AdminRole.SYSTEM_ADMIN
        )
        logger.info(f"Bootstrap system admin created | Username: {username}")
        return True
