# drama_api/crud/base.py
from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from drama_api.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class CRUDBase(Generic[ModelType]):
    """
    Shared lookups for one table. Write helpers only flush; committing is
    left to the caller's transaction(db) block.
    """

    def __init__(self, model: Type[ModelType]):
        self.model = model

    async def get(self, db: AsyncSession, id: Any) -> Optional[ModelType]:
        result = await db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def add(self, db: AsyncSession, db_obj: ModelType) -> ModelType:
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj
