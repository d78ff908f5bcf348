from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from jose import ExpiredSignatureError, JWTError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from drama_api.core.config import settings
from drama_api.core.exceptions import AppError

logger = logging.getLogger(__name__)


def _error_payload(message: str) -> Dict[str, Any]:
    return {"success": False, "error": message}


def _error_response(status_code: int, message: str, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=_error_payload(message), headers=headers)


def _unexpected_error_message(exc: Exception) -> str:
    if settings.is_production:
        return "Internal server error"
    return str(exc) or exc.__class__.__name__


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Validation failed"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = first.get("msg", "Invalid value")
    return f"{field}: {message}" if field else message


UNIQUE_VIOLATION = "23505"


def _is_unique_violation(exc: IntegrityError) -> bool:
    """Duplicate key, told apart from foreign-key and not-null failures"""
    code = getattr(exc.orig, "pgcode", None) or getattr(exc.orig, "sqlstate", None)
    if code:
        return code == UNIQUE_VIOLATION
    return "UNIQUE" in str(exc.orig).upper()


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.is_operational:
            logger.info(f"{request.method} {request.url.path} → {exc.status_code}: {exc.message}")
            headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
            return _error_response(exc.status_code, exc.message, headers)

        logger.error(f"Error: {exc.message} ({request.method} {request.url.path})", exc_info=exc)
        return _error_response(500, _unexpected_error_message(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(400, _first_validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = str(exc.detail)
        if exc.status_code == 404 and message == "Not Found":
            message = "Route not found"
        return _error_response(exc.status_code, message, getattr(exc, "headers", None))

    @app.exception_handler(ExpiredSignatureError)
    async def expired_token_handler(_: Request, exc: ExpiredSignatureError) -> JSONResponse:
        return _error_response(401, "Token expired")

    @app.exception_handler(JWTError)
    async def invalid_token_handler(_: Request, exc: JWTError) -> JSONResponse:
        return _error_response(401, "Invalid token")

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        if _is_unique_violation(exc):
            logger.warning(f"Duplicate key on {request.method} {request.url.path}: {exc.orig}")
            return _error_response(409, "Resource already exists")

        # Raw constraint details stay in the log
        logger.error(f"Integrity error on {request.method} {request.url.path}", exc_info=exc)
        return _error_response(500, "Internal server error")

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error: %s %s", request.method, request.url.path)
        return _error_response(500, _unexpected_error_message(exc))
