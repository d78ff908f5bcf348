# drama_api/core/security.py
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from jose import JWTError, jwt
from starlette.concurrency import run_in_threadpool

from drama_api.core.config import settings
from drama_api.core.exceptions import InvalidTokenError
from drama_api.db.base import utcnow
from drama_api.schemas.user import UserResponse

# Password hashing
ph = PasswordHasher(
    time_cost=settings.PASSWORD_HASH_ROUNDS,
    memory_cost=settings.PASSWORD_HASH_MEMORY_KB,
    parallelism=1,
    hash_len=32,
    salt_len=16
)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_DURATION_RE = re.compile(r"^\s*(\d+)\s*(ms|s|m|h|d|w)?\s*$")
_DURATION_UNITS = {
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
    "w": timedelta(weeks=1),
}


def parse_duration(value: str) -> timedelta:
    """
    Parse a duration such as "7d", "12h", "30m" or a bare number of seconds
    """
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return int(amount) * _DURATION_UNITS[unit or "s"]


async def hash_password(password: str) -> str:
    """
    Hash a password. Runs in a worker thread, argon2 is CPU bound.
    """
    return await run_in_threadpool(ph.hash, password)


async def compare_password(password: str, password_hash: str) -> bool:
    """
    Verify a plain password against a stored hash
    """
    def _verify() -> bool:
        try:
            return ph.verify(password_hash, password)
        except (VerifyMismatchError, VerificationError, InvalidHashError):
            return False

    return await run_in_threadpool(_verify)


def generate_token(payload: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT for {userId, email}
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or parse_duration(settings.JWT_EXPIRES_IN))
    to_encode = {
        "userId": str(payload["userId"]),
        "email": payload["email"],
        "iat": now,
        "exp": expire,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT. Raises InvalidTokenError on bad signature,
    malformed token or expiry.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        raise InvalidTokenError() from e

    if not payload.get("userId"):
        raise InvalidTokenError()
    return payload


def extract_token_from_header(auth_header: Optional[str]) -> Optional[str]:
    """
    Return the token from "Bearer <token>", None for any other shape
    """
    if not auth_header:
        return None

    parts = auth_header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        return None
    return parts[1]


def sanitize_user(user: Any) -> UserResponse:
    """
    Public projection of a user row, without password_hash
    """
    return UserResponse.model_validate(user)


def session_expiration() -> datetime:
    return utcnow() + timedelta(seconds=settings.SESSION_EXPIRES_IN)


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email or ""))
