# drama_api/api/dependencies.py
import logging
import uuid
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from drama_api.core.exceptions import (
    AppError, AuthenticationError, AuthorizationError, NotFoundError, ValidationError
)
from drama_api.core.security import extract_token_from_header, verify_token
from drama_api.crud import crud_conversation, crud_session, crud_user
from drama_api.db.models import Conversation, User
from drama_api.db.session import get_db
from drama_api.observability import context

logger = logging.getLogger(__name__)


async def _resolve_user(db: AsyncSession, authorization: Optional[str]) -> tuple:
    token = extract_token_from_header(authorization)
    if not token:
        raise AuthenticationError("No token provided")

    payload = verify_token(token)

    try:
        user_id = uuid.UUID(str(payload["userId"]))
    except ValueError:
        raise AuthenticationError("Invalid token payload") from None

    user = await crud_user.get(db, user_id)
    if user is None:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthorizationError("User account is inactive")

    # Covers both logout (row deleted) and natural expiry
    session = await crud_session.get_active_by_token(db, token=token)
    if session is None:
        raise AuthenticationError("Session expired or invalid")

    await crud_session.touch(db, session=session)
    await db.commit()
    return user, token


async def get_current_user(
        request: Request,
        authorization: Optional[str] = Header(None),
        db: AsyncSession = Depends(get_db)
) -> User:
    """
    Get current authenticated user (required authentication).
    The presented token is kept on request.state.token.
    """
    user, token = await _resolve_user(db, authorization)
    request.state.user = user
    request.state.token = token
    context.bind(user_id=str(user.id))
    return user


async def get_current_user_optional(
        request: Request,
        authorization: Optional[str] = Header(None),
        db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """
    Get current user if authenticated, None on any auth failure
    """
    try:
        return await get_current_user(request, authorization=authorization, db=db)
    except AppError as e:
        logger.debug(f"Optional auth failed: {e.message}")
        await db.rollback()
        return None


def require_ownership(field: str = "user_id"):
    """
    Dependency factory: the owner id in path param or JSON body `field`
    must match the authenticated user. Absent field passes.
    """
    async def check_ownership(
            request: Request,
            current_user: User = Depends(get_current_user)
    ) -> User:
        owner_id = request.path_params.get(field)
        if owner_id is None and request.headers.get("content-type", "").startswith("application/json"):
            try:
                body = await request.json()
            except ValueError:
                raise ValidationError("Invalid JSON body") from None
            if isinstance(body, dict):
                owner_id = body.get(field)

        if owner_id and str(owner_id) != str(current_user.id):
            raise AuthorizationError("You do not have permission to access this resource")
        return current_user

    return check_ownership


async def verify_conversation_ownership(
        conversation_id: uuid.UUID,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
) -> Conversation:
    """
    Load a live conversation owned by the current user: 404 if missing or
    deleted, 403 if someone else's.
    """
    conversation = await crud_conversation.get_active(db, conversation_id=conversation_id)
    if conversation is None:
        raise NotFoundError("Conversation not found")

    if conversation.user_id != current_user.id:
        raise AuthorizationError("You do not have permission to access this conversation")

    context.bind(conversation_id=str(conversation.id))
    return conversation
