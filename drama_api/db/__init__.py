# drama_api/db/__init__.py
from drama_api.db.base import Base
from drama_api.db.session import get_db, engine, transaction

__all__ = [
    "Base",
    "get_db",
    "engine",
    "transaction",
]
