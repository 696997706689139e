"""
Shared persistence helpers for the TennisMate tables.

Each table gets a thin repository subclass that adds its own queries on top
of these. Writes flush but never commit: the service owning the unit of work
commits once it has finished every step. Store failures are logged here and
re-raised so the services can turn them into a result or an error code.
"""

from __future__ import annotations
from typing import Generic, TypeVar, Type, Optional
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import logging

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class BaseRepository(Generic[ModelT]):
    """
    Lookup by primary key plus flush-only create and update.

    Example:
        class SwipeRepository(BaseRepository[Swipe]):
            def __init__(self):
                super().__init__(Swipe)
    """

    def __init__(self, model: Type[ModelT]):
        self.model = model

    @property
    def table(self) -> str:
        return self.model.__tablename__

    async def get(self, db: AsyncSession, id: UUID) -> Optional[ModelT]:
        try:
            result = await db.execute(select(self.model).where(self.model.id == id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Failed to load {self.table} row {id}: {e}")
            raise

    async def create(self, db: AsyncSession, obj_in: dict) -> ModelT:
        """
        Insert one row and return it with server defaults loaded.

        On failure the session is rolled back before the error propagates.
        A unique violation (a repeated swipe, a second match for the same
        pair) is logged as a warning since callers expect and handle it.

        Example:
            swipe = await repo.create(db, {"user_id": a, "target_user_id": b, "action": "like"})
            await db.commit()
        """
        row = self.model(**obj_in)
        db.add(row)
        try:
            await db.flush()
            await db.refresh(row)
        except IntegrityError as e:
            logger.warning(f"Constraint rejected new {self.table} row: {e.orig}")
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            logger.error(f"Failed to insert into {self.table}: {e}")
            await db.rollback()
            raise
        return row

    async def update(self, db: AsyncSession, db_obj: ModelT, obj_in: dict) -> ModelT:
        """
        Apply ``obj_in`` to a loaded row and flush.

        Keys that are not attributes of the model are ignored.
        """
        for field, value in obj_in.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)
        try:
            await db.flush()
            await db.refresh(db_obj)
        except SQLAlchemyError as e:
            logger.error(f"Failed to update {self.table} row {db_obj.id}: {e}")
            await db.rollback()
            raise
        return db_obj

    async def exists(self, db: AsyncSession, id: UUID) -> bool:
        try:
            result = await db.execute(select(self.model.id).where(self.model.id == id).limit(1))
            return result.first() is not None
        except SQLAlchemyError as e:
            logger.error(f"Failed to check {self.table} row {id}: {e}")
            raise
