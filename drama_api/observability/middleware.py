from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from drama_api.observability.context import bind, unbind
from drama_api.observability.metrics import inc_counter, observe_ms

logger = logging.getLogger("drama_api.requests")


def _route_path(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assigns a request id, logs every request and records request metrics."""

    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get("x-request-id") or str(uuid.uuid4())
        bound = bind(request_id=rid, user_id=None, conversation_id=None)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"{request.method} {request.url.path} failed")
            raise
        else:
            duration_ms = (time.perf_counter() - start) * 1000
            path = _route_path(request)
            inc_counter(
                "http_requests_total",
                method=request.method,
                path=path,
                status=response.status_code,
            )
            observe_ms("http_request_duration_ms", duration_ms, method=request.method, path=path)
            logger.info(
                f"{request.method} {request.url.path} {response.status_code} - {duration_ms:.0f}ms"
            )
            response.headers["x-request-id"] = rid
            return response
        finally:
            unbind(bound)
