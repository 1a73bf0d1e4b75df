"""CRUD operations for admin users."""
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from crud import base_crud
from db.enums import AdminRole
from db.models import AdminUser, TechRequest


async def find_admin(db: AsyncSession, admin_id: int) -> Optional[AdminUser]:
    return await base_crud.find_by_id(db, AdminUser, admin_id)


async def find_by_username(db: AsyncSession, username: str) -> Optional[AdminUser]:
    return await base_crud.find_one(db, AdminUser, filters={"username": username})


async def create_admin(
    db: AsyncSession, username: str, password_hash: str, role: AdminRole
) -> AdminUser:
    return await base_crud.create(
        db,
        AdminUser,
        obj_in={
            "username": username,
            "password_hash": password_hash,
            "role": role.value,
            "is_active": True,
        },
    )


async def list_admins(db: AsyncSession) -> List[AdminUser]:
    stmt = select(AdminUser).order_by(AdminUser.created_at.desc(), AdminUser.id.desc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def count_admins(db: AsyncSession, role: Optional[AdminRole] = None) -> int:
    return await base_crud.count(
        db, AdminUser, filters={"role": role.value if role else None}
    )


async def count_assigned_requests(db: AsyncSession, admin_id: int) -> int:
    stmt = select(func.count(TechRequest.id)).where(TechRequest.assigned_admin_id == admin_id)
    return (await db.execute(stmt)).scalar() or 0


async def set_active(db: AsyncSession, admin: AdminUser, is_active: bool) -> AdminUser:
    return await base_crud.apply_changes(db, admin, {"is_active": is_active})


async def delete_admin(db: AsyncSession, admin: AdminUser) -> None:
    await base_crud.delete(db, admin)
