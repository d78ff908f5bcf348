# drama_api/api/endpoints/auth.py
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from drama_api.api.dependencies import get_current_user
from drama_api.core import security
from drama_api.core.config import settings
from drama_api.core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from drama_api.crud import crud_session, crud_user
from drama_api.db.models import User
from drama_api.db.session import get_db, transaction
from drama_api.schemas import (
    ApiResponse, AuthResponse, LoginRequest, PasswordChange, RegisterRequest, SessionResponse,
    UserResponse, UserUpdate
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


async def _open_session(db: AsyncSession, request: Request, user: User) -> AuthResponse:
    """Issue a token for user and record it as a session"""
    token = security.generate_token({"userId": user.id, "email": user.email})
    expires_at = security.session_expiration()
    await crud_session.create_session(
        db,
        user_id=user.id,
        token=token,
        expires_at=expires_at,
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent")
    )
    return AuthResponse(user=security.sanitize_user(user), token=token, expires_at=expires_at)


@router.post(
    "/register",
    response_model=ApiResponse[AuthResponse],
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED
)
async def register(
        user_in: RegisterRequest,
        request: Request,
        db: AsyncSession = Depends(get_db)
):
    """Register a new user and open a session"""
    if not settings.ENABLE_REGISTRATION:
        raise ValidationError("Registration is currently disabled")

    if not security.is_valid_email(user_in.email):
        raise ValidationError("Invalid email format")

    async with transaction(db):
        if await crud_user.get_by_email(db, email=user_in.email):
            raise ConflictError("User with this email already exists")

        user = await crud_user.create(
            db,
            email=user_in.email,
            password_hash=await security.hash_password(user_in.password),
            username=user_in.username
        )
        auth = await _open_session(db, request, user)

    logger.info(f"New user registered: {user.email}")
    return ApiResponse[AuthResponse].ok(data=auth, message="User registered successfully")


@router.post("/login", response_model=ApiResponse[AuthResponse], response_model_exclude_unset=True)
async def login(
        form_data: LoginRequest,
        request: Request,
        db: AsyncSession = Depends(get_db)
):
    """Login and get a bearer token"""
    user = await crud_user.get_by_email(db, email=form_data.email)
    if user is None:
        raise AuthenticationError("Invalid email or password")

    if not user.is_active:
        raise AuthenticationError("Account is inactive")

    if not await security.compare_password(form_data.password, user.password_hash):
        raise AuthenticationError("Invalid email or password")

    async with transaction(db):
        await crud_user.touch_last_login(db, user=user)
        removed = await crud_session.delete_expired(db, user_id=user.id)
        auth = await _open_session(db, request, user)

    if removed:
        logger.info(f"Removed {removed} expired sessions for {user.email}")
    logger.info(f"User logged in: {user.email}")
    return ApiResponse[AuthResponse].ok(data=auth, message="Login successful")


@router.post("/logout", response_model=ApiResponse[None], response_model_exclude_unset=True)
async def logout(
        request: Request,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
):
    """Invalidate the session of the presented token"""
    async with transaction(db):
        await crud_session.delete_by_token(db, token=request.state.token)

    logger.info(f"User logged out: {current_user.email}")
    return ApiResponse[None].ok(message="Logout successful")


@router.get("/me", response_model=ApiResponse[UserResponse], response_model_exclude_unset=True)
async def read_users_me(current_user: User = Depends(get_current_user)):
    """Get current user"""
    return ApiResponse[UserResponse].ok(data=security.sanitize_user(current_user))


@router.put("/me", response_model=ApiResponse[UserResponse], response_model_exclude_unset=True)
async def update_users_me(
        user_in: UserUpdate,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
):
    """Update username and/or email"""
    if user_in.username is None and user_in.email is None:
        raise ValidationError("No fields to update")

    async with transaction(db):
        if user_in.email is not None and await crud_user.email_taken(
            db, email=user_in.email, exclude_id=current_user.id
        ):
            raise ConflictError("Email already in use")

        user = await crud_user.update_profile(
            db, user=current_user, username=user_in.username, email=user_in.email
        )

    return ApiResponse[UserResponse].ok(
        data=security.sanitize_user(user), message="Profile updated successfully"
    )


@router.put("/password", response_model=ApiResponse[None], response_model_exclude_unset=True)
async def change_password(
        password_data: PasswordChange,
        request: Request,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
):
    """Change password and sign out every other session"""
    if not await security.compare_password(password_data.current_password, current_user.password_hash):
        raise AuthenticationError("Current password is incorrect")

    async with transaction(db):
        await crud_user.set_password(
            db, user=current_user, password_hash=await security.hash_password(password_data.new_password)
        )
        revoked = await crud_session.delete_all_except(
            db, user_id=current_user.id, keep_token=request.state.token
        )

    logger.info(f"Password changed for user: {current_user.email} ({revoked} other sessions revoked)")
    return ApiResponse[None].ok(message="Password changed successfully")


@router.get("/sessions", response_model=ApiResponse[List[SessionResponse]], response_model_exclude_unset=True)
async def list_sessions(
        request: Request,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
):
    """Active sessions of the current user, most recently used first"""
    sessions = await crud_session.list_active(db, user_id=current_user.id)
    data = [
        SessionResponse.model_validate(s).model_copy(update={"is_current": s.token == request.state.token})
        for s in sessions
    ]
    return ApiResponse[List[SessionResponse]].ok(data=data)


@router.delete("/sessions/{session_id}", response_model=ApiResponse[None], response_model_exclude_unset=True)
async def delete_session(
        session_id: UUID,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
):
    """Revoke one of the current user's sessions"""
    async with transaction(db):
        deleted = await crud_session.delete_for_user(db, session_id=session_id, user_id=current_user.id)
        if not deleted:
            raise NotFoundError("Session not found")

    return ApiResponse[None].ok(message="Session deleted successfully")
