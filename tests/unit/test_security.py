import asyncio
import uuid
from datetime import timedelta
from types import SimpleNamespace

import pytest

from drama_api.core import security
from drama_api.core.exceptions import AuthenticationError, InvalidTokenError


def test_hash_is_salted_and_verifies():
    first = asyncio.run(security.hash_password("longpass1"))
    second = asyncio.run(security.hash_password("longpass1"))

    assert first != second
    assert "longpass1" not in first
    assert asyncio.run(security.compare_password("longpass1", first))
    assert not asyncio.run(security.compare_password("longpass2", first))


def test_compare_password_rejects_malformed_hash():
    assert asyncio.run(security.compare_password("longpass1", "not-a-hash")) is False


def test_token_round_trip_carries_user_and_expiry():
    user_id = uuid.uuid4()
    token = security.generate_token({"userId": user_id, "email": "a@x.com"})

    payload = security.verify_token(token)
    assert payload["userId"] == str(user_id)
    assert payload["email"] == "a@x.com"
    assert payload["exp"] - payload["iat"] == 7 * 24 * 3600


def test_tokens_issued_back_to_back_differ():
    claims = {"userId": uuid.uuid4(), "email": "a@x.com"}
    assert security.generate_token(claims) != security.generate_token(claims)


def test_expired_token_is_rejected():
    token = security.generate_token(
        {"userId": uuid.uuid4(), "email": "a@x.com"}, expires_delta=timedelta(seconds=-5)
    )
    with pytest.raises(InvalidTokenError):
        security.verify_token(token)


def test_tampered_token_is_rejected():
    token = security.generate_token({"userId": uuid.uuid4(), "email": "a@x.com"})
    header, payload, signature = token.split(".")
    forged = ".".join([header, payload, signature[::-1]])

    with pytest.raises(AuthenticationError):
        security.verify_token(forged)
    with pytest.raises(InvalidTokenError):
        security.verify_token("garbage")


@pytest.mark.parametrize("header,expected", [
    ("Bearer abc.def", "abc.def"),
    (None, None),
    ("", None),
    ("abc.def", None),
    ("Basic abc", None),
    ("bearer abc", None),
    ("Bearer", None),
    ("Bearer a b", None),
])
def test_extract_token_from_header(header, expected):
    assert security.extract_token_from_header(header) == expected


def test_sanitize_user_drops_password_hash():
    row = SimpleNamespace(
        id=uuid.uuid4(),
        email="a@x.com",
        username=None,
        password_hash="secret",
        created_at=security.session_expiration(),
        updated_at=security.session_expiration(),
        last_login=None,
        is_active=True,
    )
    public = security.sanitize_user(row).model_dump()

    assert "password_hash" not in public
    assert public["email"] == "a@x.com"


@pytest.mark.parametrize("value,expected", [
    ("7d", timedelta(days=7)),
    ("12h", timedelta(hours=12)),
    ("30m", timedelta(minutes=30)),
    ("3600", timedelta(seconds=3600)),
    ("2w", timedelta(weeks=2)),
])
def test_parse_duration(value, expected):
    assert security.parse_duration(value) == expected


def test_parse_duration_rejects_garbage():
    with pytest.raises(ValueError):
        security.parse_duration("soon")


def test_is_valid_email():
    assert security.is_valid_email("a@x.com")
    assert not security.is_valid_email("a@x")
    assert not security.is_valid_email("a b@x.com")
