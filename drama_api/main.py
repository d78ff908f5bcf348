# drama_api/main.py
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from drama_api.api.router import api_router
from drama_api.core.config import settings
from drama_api.core.error_handlers import register_error_handlers
from drama_api.core.logging import setup_logging
from drama_api.db.session import check_connection, close_engine
from drama_api.observability.metrics import render_prometheus_metrics
from drama_api.observability.middleware import RequestContextMiddleware

setup_logging()
logger = logging.getLogger(__name__)

SERVICE_NAME = "drama-llm-api"
VERSION = "1.0.0"
_started_at = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Server starting...")
    if await check_connection():
        logger.info("Database connection successful")
    else:
        logger.error("Database is not reachable, /health will report unhealthy")
    logger.info(f"🌍 Environment: {settings.APP_ENV}")
    yield
    await close_engine()
    logger.info("👋 Server stopping...")


app = FastAPI(title="Drama LLM API", version=VERSION, lifespan=lifespan)

register_error_handlers(app)

app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Service status including database connectivity"""
    db_healthy = await check_connection()
    return JSONResponse(
        status_code=200 if db_healthy else 503,
        content={
            "status": "healthy" if db_healthy else "unhealthy",
            "service": SERVICE_NAME,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - _started_at, 3),
            "database": "connected" if db_healthy else "disconnected",
        },
    )


@app.get("/api")
async def api_info():
    return {
        "name": "Drama LLM API",
        "version": VERSION,
        "description": "Backend API for Drama LLM with PostgreSQL persistence",
        "endpoints": {
            "auth": "/api/auth",
            "conversations": "/api/conversations",
            "health": "/health",
            "metrics": "/metrics",
        },
    }


@app.get("/metrics", response_class=PlainTextResponse)
async def metrics():
    return PlainTextResponse(render_prometheus_metrics(), media_type="text/plain; version=0.0.4")


# API routes
app.include_router(api_router, prefix="/api")

logger.info("✅ Application configured")
