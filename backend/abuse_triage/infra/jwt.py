"""Access-token helpers for tokens minted by the site's sign-in service.

HS256 with ``settings.secret_key``; issuer and audience are fixed.
"""

from __future__ import annotations

import time
from typing import Any, Dict

import jwt
from jwt import InvalidTokenError

from abuse_triage.settings import settings


ISSUER = "archive-api"
AUDIENCE = "abuse-reports"


def _secret() -> str:
    if not settings.secret_key:
        raise InvalidTokenError("secret_key_unset")
    return settings.secret_key


def encode_access(payload: dict[str, object]) -> str:
    """Encode an access token with issuer/audience defaults."""
    now = int(time.time())
    body: Dict[str, Any] = {"iss": ISSUER, "aud": AUDIENCE, "iat": now}
    body.update(payload)
    return jwt.encode(body, _secret(), algorithm="HS256")


def decode_access(token: str) -> dict[str, object]:
    """Decode and validate an access token.

    Raises jwt.InvalidTokenError subclasses on failure.
    """
    options = {"require": ["exp", "iat", "iss", "aud"]}
    payload = jwt.decode(
        token,
        _secret(),
        algorithms=["HS256"],
        audience=AUDIENCE,
        issuer=ISSUER,
        leeway=5,
        options=options,
    )
    for k in ("sub", "email"):
        if not payload.get(k):
            raise InvalidTokenError(f"missing_claim:{k}")
    return payload  # type: ignore[return-value]
