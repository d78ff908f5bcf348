# drama_api/crud/message.py
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from drama_api.crud.base import CRUDBase
from drama_api.db.base import utcnow
from drama_api.db.models.conversation import Conversation
from drama_api.db.models.message import Message


class CRUDMessage(CRUDBase[Message]):
    async def create_message(
            self,
            db: AsyncSession,
            *,
            conversation_id: uuid.UUID,
            role: str,
            content: str,
            metadata: Optional[Dict[str, Any]] = None
    ) -> Message:
        """Insert a message and bump the conversation's updated_at"""
        now = utcnow()
        db_obj = Message(
            conversation_id=conversation_id,
            role=role,
            content=content,
            meta=metadata or {},
            created_at=now,
            updated_at=now
        )
        db.add(db_obj)
        await db.execute(
            update(Conversation)
            .where(Conversation.id == conversation_id)
            .values(updated_at=now)
            .execution_options(synchronize_session=False)
        )
        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def get_conversation_messages(
            self,
            db: AsyncSession,
            *,
            conversation_id: uuid.UUID
    ) -> List[Message]:
        """All live messages in a conversation, oldest first"""
        result = await db.execute(
            select(Message)
            .where(Message.conversation_id == conversation_id, Message.is_deleted.is_(False))
            .order_by(Message.created_at.asc())
        )
        return list(result.scalars().all())

    async def paginate(
            self,
            db: AsyncSession,
            *,
            conversation_id: uuid.UUID,
            page: int = 1,
            limit: int = 50,
            before: Optional[datetime] = None,
            after: Optional[datetime] = None
    ) -> Tuple[List[Message], int]:
        """One page of live messages between the exclusive before/after cursors"""
        conditions = [Message.conversation_id == conversation_id, Message.is_deleted.is_(False)]
        if before is not None:
            conditions.append(Message.created_at < before)
        if after is not None:
            conditions.append(Message.created_at > after)

        total = (await db.execute(
            select(func.count(Message.id)).where(*conditions)
        )).scalar_one()

        result = await db.execute(
            select(Message)
            .where(*conditions)
            .order_by(Message.created_at.asc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        return list(result.scalars().all()), total

    async def get_live(
            self,
            db: AsyncSession,
            *,
            message_id: uuid.UUID,
            conversation_id: uuid.UUID
    ) -> Optional[Message]:
        """Message matched by both ids; soft-deleted rows never match"""
        result = await db.execute(
            select(Message).where(
                Message.id == message_id,
                Message.conversation_id == conversation_id,
                Message.is_deleted.is_(False)
            )
        )
        return result.scalar_one_or_none()

    async def update_message(
            self,
            db: AsyncSession,
            *,
            message: Message,
            content: Optional[str] = None,
            metadata: Optional[Dict[str, Any]] = None
    ) -> Message:
        if content is not None:
            message.content = content
        if metadata is not None:
            message.meta = metadata
        message.updated_at = utcnow()
        await db.flush()
        return message

    async def soft_delete(
            self,
            db: AsyncSession,
            *,
            message_id: uuid.UUID,
            conversation_id: uuid.UUID
    ) -> int:
        result = await db.execute(
            update(Message)
            .where(
                Message.id == message_id,
                Message.conversation_id == conversation_id,
                Message.is_deleted.is_(False)
            )
            .values(is_deleted=True, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount


# Create instance
crud_message = CRUDMessage(Message)
