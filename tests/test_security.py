# tests/test_security.py
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from jose import JWTError, jwt

from storefront.core.config import settings
from storefront.core.security import create_access_token, decode_access_token

OLD_KEY = "previous-signing-key-0001"


def _signed_with(key: str, subject: uuid.UUID, **claims) -> str:
    payload = {
        "sub": str(subject),
        "type": "access",
        "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
        **claims,
    }
    return jwt.encode(payload, key, algorithm=settings.JWT_ALGORITHM)


def test_claims_round_trip():
    customer_id = uuid.uuid4()
    claims = decode_access_token(create_access_token(customer_id, scopes=["admin"]))
    assert claims.customer_id == customer_id
    assert claims.has_scopes(["admin"])
    assert not claims.has_scopes(["admin", "reports"])
    assert claims.token_id


def test_rotated_key_is_accepted_only_as_fallback(monkeypatch):
    token = _signed_with(OLD_KEY, uuid.uuid4())
    with pytest.raises(JWTError):
        decode_access_token(token)

    monkeypatch.setattr(settings, "SECRET_KEY_FALLBACKS_RAW", f"{OLD_KEY}, ")
    assert decode_access_token(token).scopes == frozenset()


def test_rejects_expired_and_malformed_tokens():
    expired = jwt.encode(
        {"sub": str(uuid.uuid4()), "type": "access", "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(JWTError):
        decode_access_token(expired)

    with pytest.raises(JWTError):
        decode_access_token(_signed_with(settings.SECRET_KEY, uuid.uuid4(), type="refresh"))

    bad_subject = jwt.encode(
        {"sub": "customer-42", "type": "access", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(JWTError):
        decode_access_token(bad_subject)


def test_async_url_is_derived_from_sync_url():
    assert settings._async_url_for("sqlite:///./x.db") == "sqlite+aiosqlite:///./x.db"
    assert settings._async_url_for("postgresql+psycopg://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    resp = await client.get("/", headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"

    minted = await client.get("/")
    assert len(minted.headers["X-Request-ID"]) == 32
