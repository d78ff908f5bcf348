# drama_api/schemas/session.py
import uuid
from typing import Optional
from datetime import datetime
from pydantic import BaseModel


class SessionResponse(BaseModel):
    id: uuid.UUID
    created_at: datetime
    last_activity: datetime
    expires_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    is_current: bool = False

    class Config:
        from_attributes = True
