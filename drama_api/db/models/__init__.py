# drama_api/db/models/__init__.py
"""Database models"""
from drama_api.db.base import Base
from drama_api.db.models.user import User
from drama_api.db.models.session import UserSession
from drama_api.db.models.conversation import Conversation
from drama_api.db.models.message import Message


__all__ = [
    "Base",
    "User",
    "UserSession",
    "Conversation",
    "Message",
]
