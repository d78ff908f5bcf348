import sqlite3
from typing import Optional

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError

from drama_api.api.dependencies import get_current_user_optional, require_ownership
from drama_api.core.config import settings
from drama_api.core.error_handlers import register_error_handlers
from drama_api.core.exceptions import AppError, ConflictError
from drama_api.db.models import User


class _PgError(Exception):
    def __init__(self, pgcode, message):
        super().__init__(message)
        self.pgcode = pgcode


def _build_app() -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/whoami")
    async def whoami(user: Optional[User] = Depends(get_current_user_optional)):
        return {"email": user.email if user else None}

    @app.get("/users/{user_id}/notes")
    async def notes(user: User = Depends(require_ownership())):
        return {"owner": str(user.id)}

    @app.post("/notes")
    async def create_note(user: User = Depends(require_ownership("owner_id"))):
        return {"owner": str(user.id)}

    @app.get("/conflict")
    async def conflict():
        raise ConflictError()

    @app.get("/internal")
    async def internal():
        raise AppError("disk on fire", is_operational=False)

    @app.get("/duplicate")
    async def duplicate():
        raise IntegrityError("INSERT INTO users", {}, sqlite3.IntegrityError("UNIQUE constraint failed: users.email"))

    @app.get("/orphan")
    async def orphan():
        raise IntegrityError("INSERT INTO messages", {}, _PgError("23503", "violates foreign key constraint"))

    @app.get("/missing-email")
    async def missing_email():
        raise IntegrityError("INSERT INTO users", {}, sqlite3.IntegrityError("NOT NULL constraint failed: users.email"))

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    return app


@pytest.fixture
def mini(client):
    # `client` creates the schema and runs the real app's startup
    with TestClient(_build_app(), raise_server_exceptions=False) as test_client:
        yield test_client


def test_optional_user(mini, auth):
    assert mini.get("/whoami").json() == {"email": None}
    assert mini.get("/whoami", headers={"Authorization": "Bearer junk"}).json() == {"email": None}
    assert mini.get("/whoami", headers=auth["headers"]).json() == {"email": auth["user"]["email"]}


def test_ownership_from_path(mini, auth, register_user):
    other = register_user()

    own = mini.get(f"/users/{auth['user']['id']}/notes", headers=auth["headers"])
    assert own.status_code == 200
    assert own.json() == {"owner": auth["user"]["id"]}

    foreign = mini.get(f"/users/{other['user']['id']}/notes", headers=auth["headers"])
    assert foreign.status_code == 403
    assert foreign.json()["success"] is False

    assert mini.get(f"/users/{auth['user']['id']}/notes").status_code == 401


def test_ownership_from_body(mini, auth, register_user):
    other = register_user()

    assert mini.post("/notes", json={"owner_id": auth["user"]["id"]}, headers=auth["headers"]).status_code == 200
    assert mini.post("/notes", json={"owner_id": other["user"]["id"]}, headers=auth["headers"]).status_code == 403
    # no owner field means nothing to compare
    assert mini.post("/notes", json={"text": "hi"}, headers=auth["headers"]).status_code == 200


def test_app_error_mapping(mini):
    assert mini.get("/conflict").json() == {"success": False, "error": "Resource conflict"}
    assert mini.get("/conflict").status_code == 409

    internal = mini.get("/internal")
    assert internal.status_code == 500
    assert internal.json() == {"success": False, "error": "disk on fire"}


def test_unexpected_error_message_depends_on_environment(mini, monkeypatch):
    development = mini.get("/boom")
    assert development.status_code == 500
    assert development.json() == {"success": False, "error": "kaboom"}

    monkeypatch.setattr(settings, "APP_ENV", "production")
    production = mini.get("/boom")
    assert production.status_code == 500
    assert production.json() == {"success": False, "error": "Internal server error"}
    assert mini.get("/internal").json()["error"] == "Internal server error"


def test_ownership_rejects_malformed_json(mini, auth):
    response = mini.post(
        "/notes",
        content="{not json",
        headers={**auth["headers"], "Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid JSON body"}


def test_only_duplicate_keys_are_conflicts(mini):
    duplicate = mini.get("/duplicate")
    assert duplicate.status_code == 409
    assert duplicate.json() == {"success": False, "error": "Resource already exists"}

    for path in ("/orphan", "/missing-email"):
        response = mini.get(path)
        assert response.status_code == 500, path
        assert response.json() == {"success": False, "error": "Internal server error"}
