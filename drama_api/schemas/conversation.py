# drama_api/schemas/conversation.py
import uuid
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from drama_api.schemas.message import MessageResponse

SortField = Literal["created_at", "updated_at", "title"]
SortOrder = Literal["asc", "desc"]


class ConversationSettings(BaseModel):
    """Generation settings; unknown keys are stored and returned unchanged"""
    temperature: Optional[float] = None
    topP: Optional[float] = None
    topK: Optional[int] = None
    role: Optional[str] = None
    prompt: Optional[str] = None

    class Config:
        extra = "allow"

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class ConversationCreate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    model: str = Field(..., min_length=1, max_length=255)
    settings: Optional[ConversationSettings] = None


class ConversationUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    model: Optional[str] = Field(None, min_length=1, max_length=255)
    settings: Optional[ConversationSettings] = None


class ConversationResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    model: str
    created_at: datetime
    updated_at: datetime
    settings: ConversationSettings = Field(default_factory=ConversationSettings)

    class Config:
        from_attributes = True


class ConversationSummary(ConversationResponse):
    """List row with per-conversation aggregates"""
    message_count: int = 0
    last_message: Optional[str] = None


class ConversationDetail(BaseModel):
    conversation: ConversationResponse
    messages: List[MessageResponse]


class ConversationExport(ConversationDetail):
    exported_at: datetime
