"""
Admin management endpoints (system admins only).

Deactivation is the normal way to remove an admin; hard delete is only
allowed for admins with no assigned requests.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_session
from core.dependencies import require_admin_manager
from api.schemas.admin_user import AdminUserCreate, AdminUserRead
from api.services.admin_user_service import AdminUserService
from api.services.role_policy import Principal

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[AdminUserRead])
async def list_admins(
    db: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_admin_manager),
):
    """List every admin, active or not."""
    return await AdminUserService.list_admins(db)


@router.post("", response_model=AdminUserRead, status_code=status.HTTP_201_CREATED)
async def create_admin(
    admin_data: AdminUserCreate,
    db: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_admin_manager),
):
    """
    Create an admin or volunteer.

    Raises:
        HTTPException 409: admin_exists for a taken username
    """
    admin = await AdminUserService.create_admin(
        db, admin_data.username, admin_data.password, admin_data.role
    )
    logger.info(f"Admin {admin.id} created by admin {principal.id}")
    return admin


@router.post("/{admin_id}/deactivate", response_model=AdminUserRead)
async def deactivate_admin(
    admin_id: int,
    db: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_admin_manager),
):
    """
    Soft delete. The admin can no longer log in; assigned requests keep
    their assignee.

    Raises:
        HTTPException 404: admin_not_found
    """
    return await AdminUserService.deactivate_admin(db, admin_id)


@router.delete("/{admin_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_admin(
    admin_id: int,
    db: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_admin_manager),
):
    """
    Hard delete.

    Raises:
        HTTPException 404: admin_not_found
        HTTPException 409: admin_has_requests
    """
    await AdminUserService.delete_admin(db, admin_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
