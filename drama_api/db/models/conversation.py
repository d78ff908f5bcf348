# drama_api/db/models/conversation.py
import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey, Boolean, Uuid
from sqlalchemy.orm import relationship

from drama_api.db.base import Base, utcnow
from drama_api.db.models.types import JSONType


class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False, default="New Conversation")
    model = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    is_deleted = Column(Boolean, default=False, nullable=False)
    settings = Column(JSONType, default=dict, nullable=False)

    # Relationships
    owner = relationship("User", back_populates="conversations")
    messages = relationship("Message", back_populates="conversation", cascade="all, delete-orphan",
                            order_by="Message.created_at")
