"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
- Session token: 24h, claims {name, email}, signed with session_secret
- Reset token: short-lived (60min), claims {sub: email, jti}, signed
  with reset_secret

Each token also carries a "type" claim, and the two families use
different secrets, so neither can stand in for the other.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from inkpress.config import Settings

SESSION_TOKEN_TYPE = "session"
RESET_TOKEN_TYPE = "reset"


class TokenError(Exception):
    """Raised when token creation/verification fails."""


@dataclass(frozen=True)
class SessionClaims:
    name: str
    email: str


@dataclass(frozen=True)
class ResetClaims:
    email: str
    jti: str
    expires_at: datetime


def create_session_token(
    settings: Settings,
    name: str,
    email: str,
    now: Optional[datetime] = None,
) -> str:
    """Create a signed session token for a signed-in user."""
    issued = now or datetime.now(timezone.utc)
    payload = {
        "name": name,
        "email": email,
        "type": SESSION_TOKEN_TYPE,
        "iat": issued,
        "exp": issued + timedelta(hours=settings.session_token_expire_hours),
    }
    return jwt.encode(
        payload, settings.session_secret, algorithm=settings.jwt_algorithm
    )


def verify_session_token(settings: Settings, token: str) -> SessionClaims:
    """Verify a session token and return its claims.

    Raises TokenError when the token is malformed, badly signed, expired,
    or not a session token.
    """
    payload = _decode(token, settings.session_secret, settings.jwt_algorithm)
    if payload.get("type") != SESSION_TOKEN_TYPE:
        raise TokenError("Not a session token")
    try:
        return SessionClaims(name=payload["name"], email=payload["email"])
    except KeyError as e:
        raise TokenError(f"Invalid token: missing claim {e}")


def create_reset_token(
    settings: Settings,
    email: str,
    now: Optional[datetime] = None,
) -> str:
    """Create a single-purpose password reset token for an email address."""
    issued = now or datetime.now(timezone.utc)
    payload = {
        "sub": email,
        "type": RESET_TOKEN_TYPE,
        "jti": uuid.uuid4().hex,
        "iat": issued,
        "exp": issued + timedelta(minutes=settings.reset_token_expire_minutes),
    }
    return jwt.encode(
        payload, settings.reset_secret, algorithm=settings.jwt_algorithm
    )


def verify_reset_token(settings: Settings, token: str) -> ResetClaims:
    """Verify a reset token and return the email it was issued for.

    The token itself does not track consumption; see ResetTokenLedger.
    """
    payload = _decode(token, settings.reset_secret, settings.jwt_algorithm)
    if payload.get("type") != RESET_TOKEN_TYPE:
        raise TokenError("Not a reset token")
    try:
        return ResetClaims(
            email=payload["sub"],
            jti=payload["jti"],
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
    except KeyError as e:
        raise TokenError(f"Invalid token: missing claim {e}")


def _decode(token: str, secret: str, algorithm: str) -> dict:
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")
