# drama_api/schemas/message.py
import uuid
from typing import Any, Dict, Literal, Optional
from datetime import datetime
from pydantic import AliasChoices, BaseModel, Field

MessageRole = Literal["user", "assistant", "system"]


class MessageMetadata(BaseModel):
    """Known generation stats; any other keys are kept as-is"""
    tokens: Optional[int] = None
    duration_ms: Optional[float] = None
    model: Optional[str] = None

    class Config:
        extra = "allow"

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class MessageCreate(BaseModel):
    role: MessageRole
    content: str = Field(..., min_length=1)
    metadata: Optional[MessageMetadata] = None


class MessageUpdate(BaseModel):
    content: Optional[str] = Field(None, min_length=1)
    metadata: Optional[MessageMetadata] = None


class MessageResponse(BaseModel):
    id: uuid.UUID
    conversation_id: uuid.UUID
    role: str
    content: str
    created_at: datetime
    updated_at: datetime
    # ORM attribute is "meta"; "metadata" is reserved by SQLAlchemy
    metadata: MessageMetadata = Field(
        default_factory=MessageMetadata,
        validation_alias=AliasChoices("meta", "metadata"),
    )

    class Config:
        from_attributes = True
