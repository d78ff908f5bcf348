# drama_api/crud/conversation.py
import uuid
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from drama_api.crud.base import CRUDBase
from drama_api.db.base import utcnow
from drama_api.db.models.conversation import Conversation
from drama_api.db.models.message import Message


def _listing_query(user_id: uuid.UUID):
    """
    Live conversations of a user with message_count and last_message
    computed from their live messages.
    """
    live_messages = (Message.conversation_id == Conversation.id, Message.is_deleted.is_(False))
    message_count = (
        select(func.count(Message.id))
        .where(*live_messages)
        .correlate(Conversation)
        .scalar_subquery()
    )
    last_message = (
        select(Message.content)
        .where(*live_messages)
        .order_by(Message.created_at.desc())
        .limit(1)
        .correlate(Conversation)
        .scalar_subquery()
    )
    return (
        select(
            Conversation.id,
            Conversation.user_id,
            Conversation.title,
            Conversation.model,
            Conversation.created_at,
            Conversation.updated_at,
            Conversation.settings,
            message_count.label("message_count"),
            last_message.label("last_message"),
        )
        .where(Conversation.user_id == user_id, Conversation.is_deleted.is_(False))
        .subquery("conversation_listing")
    )


class CRUDConversation(CRUDBase[Conversation]):
    async def get_active(self, db: AsyncSession, *, conversation_id: uuid.UUID) -> Optional[Conversation]:
        """Conversation by id unless soft-deleted"""
        result = await db.execute(
            select(Conversation).where(
                Conversation.id == conversation_id,
                Conversation.is_deleted.is_(False)
            )
        )
        return result.scalar_one_or_none()

    async def list_for_user(
            self,
            db: AsyncSession,
            *,
            user_id: uuid.UUID,
            page: int = 1,
            limit: int = 20,
            search: Optional[str] = None,
            model: Optional[str] = None,
            sort_by: str = "updated_at",
            sort_order: str = "desc"
    ) -> Tuple[List[Dict[str, Any]], int]:
        """One page of the user's conversations plus the total matching count"""
        listing = _listing_query(user_id)
        query = select(listing)

        if search:
            query = query.where(or_(
                listing.c.title.icontains(search, autoescape=True),
                listing.c.last_message.icontains(search, autoescape=True),
            ))
        if model:
            query = query.where(listing.c.model == model)

        total = (await db.execute(
            select(func.count()).select_from(query.subquery())
        )).scalar_one()

        sort_column = listing.c[sort_by]
        ordering = sort_column.asc() if sort_order == "asc" else sort_column.desc()
        query = query.order_by(ordering, listing.c.id).limit(limit).offset((page - 1) * limit)

        result = await db.execute(query)
        return [dict(row) for row in result.mappings().all()], total

    async def create_for_user(
            self,
            db: AsyncSession,
            *,
            user_id: uuid.UUID,
            model: str,
            title: Optional[str] = None,
            settings: Optional[Dict[str, Any]] = None
    ) -> Conversation:
        """Create a new conversation for a user"""
        now = utcnow()
        db_obj = Conversation(
            user_id=user_id,
            title=title or "New Conversation",
            model=model,
            settings=settings or {},
            created_at=now,
            updated_at=now
        )
        return await self.add(db, db_obj)

    async def update_fields(
            self,
            db: AsyncSession,
            *,
            conversation: Conversation,
            fields: Dict[str, Any]
    ) -> Conversation:
        for name, value in fields.items():
            setattr(conversation, name, value)
        conversation.updated_at = utcnow()
        await db.flush()
        return conversation

    async def soft_delete(self, db: AsyncSession, *, conversation: Conversation) -> None:
        conversation.is_deleted = True
        conversation.updated_at = utcnow()
        await db.flush()

    async def duplicate(
            self,
            db: AsyncSession,
            *,
            conversation: Conversation,
            user_id: uuid.UUID
    ) -> Conversation:
        """
        Copy a conversation and its live messages. Copies get strictly
        increasing created_at values so the original order survives.
        """
        copy = await self.create_for_user(
            db,
            user_id=user_id,
            title=f"{conversation.title} (Copy)",
            model=conversation.model,
            settings=dict(conversation.settings or {})
        )

        result = await db.execute(
            select(Message)
            .where(Message.conversation_id == conversation.id, Message.is_deleted.is_(False))
            .order_by(Message.created_at.asc())
        )
        originals = result.scalars().all()

        base = utcnow()
        db.add_all([
            Message(
                conversation_id=copy.id,
                role=msg.role,
                content=msg.content,
                meta=dict(msg.meta or {}),
                created_at=base + timedelta(microseconds=index),
                updated_at=base + timedelta(microseconds=index),
            )
            for index, msg in enumerate(originals)
        ])
        await db.flush()
        return copy


# Create instance
crud_conversation = CRUDConversation(Conversation)
