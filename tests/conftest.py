import asyncio
import os
import uuid

# Settings are read at import time, so the environment goes first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["PASSWORD_HASH_ROUNDS"] = "1"
os.environ["PASSWORD_HASH_MEMORY_KB"] = "8"
os.environ["APP_ENV"] = "development"
os.environ["ENABLE_REGISTRATION"] = "true"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import drama_api.db.models  # noqa: E402,F401
from drama_api.db.base import Base  # noqa: E402
from drama_api.db.session import AsyncSessionLocal, engine  # noqa: E402
from drama_api.main import app  # noqa: E402

DEFAULT_PASSWORD = "longpass1"


async def _reset_schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture
def db_schema():
    asyncio.run(_reset_schema())


@pytest.fixture
def run_db(db_schema):
    """Run `await fn(db)` in a fresh session, commit, return the result."""
    def _run_db(fn):
        async def _run():
            async with AsyncSessionLocal() as db:
                result = await fn(db)
                await db.commit()
                return result

        return asyncio.run(_run())

    return _run_db


@pytest.fixture
def client(db_schema):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register_user(client):
    """Factory: register a user, return {"user", "token", "expires_at", "headers"}."""
    def _register(email=None, password=DEFAULT_PASSWORD, **extra):
        email = email or f"user-{uuid.uuid4().hex[:8]}@example.com"
        response = client.post("/api/auth/register", json={"email": email, "password": password, **extra})
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        data["headers"] = {"Authorization": f"Bearer {data['token']}"}
        return data

    return _register


@pytest.fixture
def auth(register_user):
    return register_user()


@pytest.fixture
def conversation(client, auth):
    response = client.post("/api/conversations", json={"model": "llama3"}, headers=auth["headers"])
    assert response.status_code == 201, response.text
    return response.json()["data"]
