# drama_api/crud/__init__.py
from drama_api.crud.user import crud_user
from drama_api.crud.session import crud_session
from drama_api.crud.conversation import crud_conversation
from drama_api.crud.message import crud_message

__all__ = [
    "crud_user",
    "crud_session",
    "crud_conversation",
    "crud_message"
]
