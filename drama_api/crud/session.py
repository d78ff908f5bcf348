# drama_api/crud/session.py
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from drama_api.crud.base import CRUDBase
from drama_api.db.base import utcnow
from drama_api.db.models.session import UserSession


class CRUDSession(CRUDBase[UserSession]):
    async def create_session(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        token: str,
        expires_at: datetime,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> UserSession:
        now = utcnow()
        db_obj = UserSession(
            user_id=user_id,
            token=token,
            expires_at=expires_at,
            created_at=now,
            last_activity=now,
            ip_address=ip_address,
            user_agent=user_agent
        )
        return await self.add(db, db_obj)

    async def get_active_by_token(self, db: AsyncSession, *, token: str) -> Optional[UserSession]:
        """Session for this exact token that has not expired yet"""
        result = await db.execute(
            select(UserSession).where(
                UserSession.token == token,
                UserSession.expires_at > utcnow()
            )
        )
        return result.scalar_one_or_none()

    async def touch(self, db: AsyncSession, *, session: UserSession) -> None:
        session.last_activity = utcnow()
        await db.flush()

    async def list_active(self, db: AsyncSession, *, user_id: uuid.UUID) -> List[UserSession]:
        result = await db.execute(
            select(UserSession)
            .where(UserSession.user_id == user_id, UserSession.expires_at > utcnow())
            .order_by(UserSession.last_activity.desc())
        )
        return list(result.scalars().all())

    async def delete_by_token(self, db: AsyncSession, *, token: str) -> int:
        result = await db.execute(delete(UserSession).where(UserSession.token == token))
        return result.rowcount

    async def delete_for_user(self, db: AsyncSession, *, session_id: uuid.UUID, user_id: uuid.UUID) -> int:
        """Delete one session, only if it belongs to user_id"""
        result = await db.execute(
            delete(UserSession).where(UserSession.id == session_id, UserSession.user_id == user_id)
        )
        return result.rowcount

    async def delete_expired(self, db: AsyncSession, *, user_id: uuid.UUID) -> int:
        result = await db.execute(
            delete(UserSession).where(UserSession.user_id == user_id, UserSession.expires_at < utcnow())
        )
        return result.rowcount

    async def delete_all_except(self, db: AsyncSession, *, user_id: uuid.UUID, keep_token: str) -> int:
        result = await db.execute(
            delete(UserSession).where(UserSession.user_id == user_id, UserSession.token != keep_token)
        )
        return result.rowcount


# Create instance
crud_session = CRUDSession(UserSession)
