# drama_api/api/router.py
from fastapi import APIRouter

from drama_api.api.endpoints import (
    auth,
    conversations
)

api_router = APIRouter()

# Include all routers
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(conversations.router, prefix="/conversations", tags=["Conversations"])
