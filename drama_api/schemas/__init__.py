# drama_api/schemas/__init__.py
from drama_api.schemas.common import (
    ApiResponse, Pagination
)
from drama_api.schemas.user import (
    RegisterRequest, LoginRequest, UserUpdate, PasswordChange, UserResponse, AuthResponse
)
from drama_api.schemas.session import (
    SessionResponse
)
from drama_api.schemas.message import (
    MessageRole, MessageMetadata, MessageCreate, MessageUpdate, MessageResponse
)
from drama_api.schemas.conversation import (
    SortField, SortOrder, ConversationSettings, ConversationCreate, ConversationUpdate,
    ConversationResponse, ConversationSummary, ConversationDetail, ConversationExport
)

__all__ = [
    # Common
    "ApiResponse", "Pagination",
    # User / auth
    "RegisterRequest", "LoginRequest", "UserUpdate", "PasswordChange", "UserResponse", "AuthResponse",
    # Session
    "SessionResponse",
    # Message
    "MessageRole", "MessageMetadata", "MessageCreate", "MessageUpdate", "MessageResponse",
    # Conversation
    "SortField", "SortOrder", "ConversationSettings", "ConversationCreate", "ConversationUpdate",
    "ConversationResponse", "ConversationSummary", "ConversationDetail", "ConversationExport",
]
