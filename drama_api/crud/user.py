# drama_api/crud/user.py
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from drama_api.crud.base import CRUDBase
from drama_api.db.base import utcnow
from drama_api.db.models.user import User


class CRUDUser(CRUDBase[User]):
    async def get_by_email(self, db: AsyncSession, *, email: str) -> Optional[User]:
        """Get user by email, case-insensitive"""
        result = await db.execute(
            select(User).where(User.email == email.lower())
        )
        return result.scalar_one_or_none()

    async def email_taken(
        self, db: AsyncSession, *, email: str, exclude_id: Optional[uuid.UUID] = None
    ) -> bool:
        query = select(User.id).where(User.email == email.lower())
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        result = await db.execute(query.limit(1))
        return result.first() is not None

    async def create(
        self,
        db: AsyncSession,
        *,
        email: str,
        password_hash: str,
        username: Optional[str] = None
    ) -> User:
        """Create new user from an already hashed password"""
        now = utcnow()
        db_obj = User(
            email=email.lower(),
            password_hash=password_hash,
            username=username,
            is_active=True,
            created_at=now,
            updated_at=now
        )
        return await self.add(db, db_obj)

    async def update_profile(
        self,
        db: AsyncSession,
        *,
        user: User,
        username: Optional[str] = None,
        email: Optional[str] = None
    ) -> User:
        if username is not None:
            user.username = username
        if email is not None:
            user.email = email.lower()
        user.updated_at = utcnow()
        await db.flush()
        return user

    async def set_password(self, db: AsyncSession, *, user: User, password_hash: str) -> User:
        user.password_hash = password_hash
        user.updated_at = utcnow()
        await db.flush()
        return user

    async def touch_last_login(self, db: AsyncSession, *, user: User) -> None:
        user.last_login = utcnow()
        await db.flush()


# Create instance
crud_user = CRUDUser(User)
