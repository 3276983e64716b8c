"""Bearer token verification.

Tokens are issued by the identity service; the storefront only verifies them
and reads the customer id (``sub``) and granted scopes. ``create_access_token``
exists for local tooling and tests.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable

from jose import JWTError, jwt

from storefront.core.config import settings

ALGORITHM = settings.JWT_ALGORITHM
TOKEN_TYPE = "access"


@dataclass(frozen=True)
class AccessClaims:
    customer_id: uuid.UUID
    scopes: frozenset[str] = field(default_factory=frozenset)
    token_id: str | None = None

    def has_scopes(self, required: Iterable[str]) -> bool:
        return set(required) <= self.scopes


def _signing_keys() -> list[str]:
    # Clave actual primero; las anteriores solo sirven para verificar durante la rotación.
    keys = [settings.SECRET_KEY, *settings.SECRET_KEY_FALLBACKS]
    return list(dict.fromkeys(key for key in keys if key))


def create_access_token(
    subject: Any,
    expires_minutes: int | None = None,
    scopes: Iterable[str] | None = None,
) -> str:
    issued = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(subject),
        "type": TOKEN_TYPE,
        "iat": int(issued.timestamp()),
        "exp": issued + lifetime,
        "jti": uuid.uuid4().hex,
        "scopes": sorted(set(scopes or [])),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def _decode(token: str) -> dict[str, Any]:
    if jwt.get_unverified_header(token).get("alg") != ALGORITHM:
        raise JWTError("Token signed with unexpected algorithm")

    error: JWTError = JWTError("No signing key configured")
    for key in _signing_keys():
        try:
            return jwt.decode(token, key, algorithms=[ALGORITHM])
        except JWTError as exc:
            error = exc
    raise error


def decode_access_token(token: str) -> AccessClaims:
    """Verify ``token`` and return its claims; raises ``JWTError`` on any defect."""
    payload = _decode(token)
    if payload.get("type") != TOKEN_TYPE:
        raise JWTError("Invalid token type")
    try:
        customer_id = uuid.UUID(str(payload.get("sub")))
    except ValueError as exc:
        raise JWTError("Invalid subject") from exc
    return AccessClaims(
        customer_id=customer_id,
        scopes=frozenset(payload.get("scopes") or []),
        token_id=payload.get("jti"),
    )
