"""
Authentication dependencies for FastAPI routes.

User-facing routes take an HS256 bearer access token whose ``sub`` is the user
id. Internal function-to-function calls present a shared ``X-Internal-Token``.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

import jwt
from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.config import Settings, get_settings
from app.exceptions import AuthError

JWT_ALGORITHMS = ["HS256"]

# Security scheme; missing credentials are reported as AuthError, not 403
security = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    """Authenticated user taken from the access token."""

    id: UUID
    email: Optional[str] = None


def decode_access_token(token: str, settings: Settings) -> CurrentUser:
    if not settings.auth_jwt_secret:
        raise AuthError("Authentication is not configured")
    try:
        payload = jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=JWT_ALGORITHMS,
            audience=settings.auth_jwt_audience,
            options={"verify_aud": bool(settings.auth_jwt_audience)},
        )
    except jwt.PyJWTError as e:
        raise AuthError("Invalid or expired token") from e

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError as e:
        raise AuthError("Invalid token payload") from e
    return CurrentUser(id=user_id, email=payload.get("email"))


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    """Get the current user from the bearer token."""
    if credentials is None or not credentials.credentials:
        raise AuthError("Authentication token required")
    return decode_access_token(credentials.credentials, settings)


def verify_internal_token(
    x_internal_token: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    """Guard for endpoints called by other services (e.g. routing)."""
    expected = settings.internal_api_token
    if not expected or not x_internal_token:
        raise AuthError("Internal token required")
    if not hmac.compare_digest(expected, x_internal_token):
        raise AuthError("Invalid internal token")
