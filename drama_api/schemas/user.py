# drama_api/schemas/user.py
import uuid
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=200)
    username: Optional[str] = Field(None, min_length=3, max_length=100)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=200)


class UserUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=3, max_length=100)
    email: Optional[EmailStr] = None


class PasswordChange(BaseModel):
    current_password: str = Field(..., alias="currentPassword", min_length=1, max_length=200)
    new_password: str = Field(..., alias="newPassword", min_length=8, max_length=200)

    class Config:
        populate_by_name = True


class UserResponse(BaseModel):
    """User as sent to clients, without password_hash"""
    id: uuid.UUID
    email: str
    username: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    last_login: Optional[datetime] = None
    is_active: bool

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    user: UserResponse
    token: str
    expires_at: datetime
