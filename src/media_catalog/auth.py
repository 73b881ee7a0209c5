"""
Authentication utilities: password hashing and JWT handling.

Clients authenticate with either:
- Authorization: Bearer <token>
- the HTTP-only cookie set by POST /users/signup and POST /users/login
"""

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from media_catalog.errors import UnauthorizedError

logger = logging.getLogger(__name__)

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
_bearer_scheme = HTTPBearer(auto_error=False)

AUTHENTICATION_FAILED = "Authentication failed"
TOKEN_HEADER = "X-Access-Token"


def _jwt_secret() -> str:
    secret = os.getenv("JWT_SECRET")
    if not secret:
        raise RuntimeError("JWT_SECRET env var is required.")
    return secret


def _jwt_algorithm() -> str:
    return os.getenv("JWT_ALGORITHM", "HS256")


def _jwt_exp_minutes() -> int:
    try:
        return int(os.getenv("JWT_EXPIRES_MINUTES", "4320"))  # default: 3 days
    except ValueError:
        return 4320


def _cookie_name() -> str:
    return os.getenv("AUTH_COOKIE_NAME", "token")


@dataclass(frozen=True)
class CurrentUser:
    """Identity attached to an authenticated request."""

    id: uuid.UUID


# PUBLIC_INTERFACE
def hash_password(password: str) -> str:
    """Hash a plain-text password."""
    return _pwd_context.hash(password)


# PUBLIC_INTERFACE
def verify_password(password: str, password_hash: str) -> bool:
    """Verify a plain-text password against a hash."""
    try:
        return _pwd_context.verify(password, password_hash)
    except ValueError:
        # Not a recognizable hash.
        return False


# PUBLIC_INTERFACE
def create_access_token(*, user_id: uuid.UUID, email: str) -> str:
    """
    Create a signed JWT access token.

    Token contains:
      - sub: user_id (string UUID)
      - email
      - iat, exp

    Returns:
        JWT string.
    """
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=_jwt_exp_minutes())
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, _jwt_secret(), algorithm=_jwt_algorithm())


# PUBLIC_INTERFACE
def issue_token(response: Response, *, user_id: uuid.UUID, email: str) -> str:
    """Create a token and attach it to the response as cookie and header."""
    token = create_access_token(user_id=user_id, email=email)
    response.set_cookie(
        _cookie_name(),
        token,
        max_age=_jwt_exp_minutes() * 60,
        httponly=True,
        samesite="lax",
    )
    response.headers[TOKEN_HEADER] = token
    return token


def _decode_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, _jwt_secret(), algorithms=[_jwt_algorithm()])
    except JWTError:
        logger.info("Rejected invalid or expired token")
        raise UnauthorizedError(AUTHENTICATION_FAILED)


# PUBLIC_INTERFACE
def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> CurrentUser:
    """
    FastAPI dependency that returns the authenticated identity.

    Raises 401 if the token is missing, invalid or carries no usable subject.
    """
    token: Optional[str] = None
    if credentials is not None and credentials.scheme.lower() == "bearer":
        token = credentials.credentials
    else:
        token = request.cookies.get(_cookie_name())

    if not token:
        raise UnauthorizedError(AUTHENTICATION_FAILED)

    payload = _decode_token(token)
    try:
        return CurrentUser(id=uuid.UUID(str(payload.get("sub"))))
    except ValueError:
        raise UnauthorizedError(AUTHENTICATION_FAILED)
