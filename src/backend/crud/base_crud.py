"""
Base CRUD operations as plain functions.

Reusable data access shared by the model-specific CRUD modules. Nothing here
commits: the caller's transaction (core.database.run_transaction) decides
when the unit of work ends.
"""
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

ModelType = TypeVar("ModelType", bound=SQLModel)


async def find_by_id(
    db: AsyncSession,
    model: Type[ModelType],
    id_value: Any,
    *,
    for_update: bool = False,
) -> Optional[ModelType]:
    """
    Find a single record by ID.

    Args:
        db: Database session
        model: SQLModel class
        id_value: The ID value to search for
        for_update: Lock the row (SELECT ... FOR UPDATE) and refresh any
            instance already in the session from the database

    Returns:
        Model instance or None if not found
    """
    stmt = select(model).where(model.id == id_value)

    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)

    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def find_one(
    db: AsyncSession,
    model: Type[ModelType],
    *,
    filters: Dict[str, Any],
) -> Optional[ModelType]:
    """
    Find the first record matching all field:value filters.

    Returns:
        Model instance or None if not found
    """
    stmt = select(model)
    for field, value in filters.items():
        stmt = stmt.where(getattr(model, field) == value)

    result = await db.execute(stmt.limit(1))
    return result.scalars().first()


async def find_paginated(
    db: AsyncSession,
    model: Type[ModelType],
    *,
    page: int = 1,
    per_page: int = 20,
    conditions: Optional[Sequence[Any]] = None,
    order_by: Optional[Sequence[Any]] = None,
) -> Tuple[List[ModelType], int]:
    """
    Find records with pagination and total count.

    Args:
        db: Database session
        model: SQLModel class
        page: Page number (1-indexed)
        per_page: Items per page
        conditions: SQL expressions ANDed into the WHERE clause
        order_by: Columns to order by

    Returns:
        Tuple of (list of records, total count)
    """
    stmt = select(model)
    count_stmt = select(func.count(model.id))

    for condition in conditions or ():
        stmt = stmt.where(condition)
        count_stmt = count_stmt.where(condition)

    total = (await db.execute(count_stmt)).scalar() or 0

    if order_by:
        stmt = stmt.order_by(*order_by)

    offset = (page - 1) * per_page
    stmt = stmt.offset(offset).limit(per_page)

    result = await db.execute(stmt)
    return list(result.scalars().all()), total


async def count(
    db: AsyncSession,
    model: Type[ModelType],
    *,
    filters: Optional[Dict[str, Any]] = None,
) -> int:
    """
    Count records matching field:value filters (None values are ignored).
    """
    stmt = select(func.count(model.id))

    for field, value in (filters or {}).items():
        if value is not None:
            stmt = stmt.where(getattr(model, field) == value)

    result = await db.execute(stmt)
    return result.scalar() or 0


async def create(
    db: AsyncSession,
    model: Type[ModelType],
    *,
    obj_in: Dict[str, Any],
) -> ModelType:
    """
    Add a new record and flush it so its primary key is assigned.

    Args:
        db: Database session
        model: SQLModel class
        obj_in: Dictionary of field values

    Returns:
        Created model instance
    """
    db_obj = model(**obj_in)
    db.add(db_obj)
    await db.flush()
    return db_obj


async def apply_changes(
    db: AsyncSession,
    db_obj: ModelType,
    changes: Dict[str, Any],
) -> ModelType:
    """
    Set attributes on a loaded record and flush.

    Returns:
        The same instance
    """
    for field, value in changes.items():
        setattr(db_obj, field, value)

    db.add(db_obj)
    await db.flush()
    return db_obj


async def delete(db: AsyncSession, db_obj: SQLModel) -> None:
    """Hard-delete a loaded record."""
    await db.delete(db_obj)
    await db.flush()

