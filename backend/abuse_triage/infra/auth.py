"""Optional submitter identity for the report endpoint.

A Bearer JWT is honoured in every environment. The X-User-* headers are a
development convenience and are ignored elsewhere. Guests send neither.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from abuse_triage.domain.spam import AuthenticatedIdentity
from abuse_triage.infra import jwt as jwt_helper
from abuse_triage.settings import settings

_bearer_scheme = HTTPBearer(auto_error=False)


def verify_access_jwt(token: str) -> AuthenticatedIdentity:
	"""Decode an access JWT into the identity the spam gate trusts.

	Requires ``sub`` and ``email`` claims; ``login`` is optional.
	"""
	try:
		payload = jwt_helper.decode_access(token)
	except Exception:
		# Normalise all decode failures to invalid_token for the API surface
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")

	sub = str(payload.get("sub") or "").strip()
	email = str(payload.get("email") or "").strip()
	if not sub or not email:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
	login = payload.get("login") or payload.get("handle")
	return AuthenticatedIdentity(user_id=sub, email=email, login=str(login) if login is not None else None)


async def get_optional_identity(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_email: Optional[str] = Header(default=None, alias="X-User-Email"),
	x_user_login: Optional[str] = Header(default=None, alias="X-User-Login"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedIdentity | None:
	"""Resolve the signed-in submitter, or None for a guest.

	A bearer token that fails verification is a 401, not a silent guest.
	"""
	if credentials and credentials.scheme.lower() == "bearer":
		return verify_access_jwt(credentials.credentials)

	# In dev only, allow X-User-* fallback for local tools
	if settings.is_dev() and x_user_id and x_user_email:
		return AuthenticatedIdentity(user_id=x_user_id, email=x_user_email, login=x_user_login)

	return None
