# drama_api/db/models/message.py
import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Boolean, Uuid
from sqlalchemy.orm import relationship

from drama_api.db.base import Base, utcnow
from drama_api.db.models.types import JSONType


class Message(Base):
    __tablename__ = "messages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id = Column(Uuid, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(20), nullable=False)  # user, assistant, system
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False)
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSONType, default=dict, nullable=False)

    # Relationships
    conversation = relationship("Conversation", back_populates="messages")
