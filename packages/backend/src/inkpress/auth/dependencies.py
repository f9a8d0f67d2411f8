"""FastAPI auth dependencies and session cookie helpers.

Learn: Signin puts the session JWT in an HTTP-only cookie, so browser
scripts never see it. Protected routes depend on get_current_user, which
reads that cookie back and verifies signature + expiry. There is no
server-side session table: signout just clears the cookie.
"""

from fastapi import Depends, HTTPException, Request, Response

from inkpress.auth.jwt import TokenError, verify_session_token
from inkpress.config import Settings


def get_app_settings(request: Request) -> Settings:
    """The Settings the running app was built with."""
    return request.app.state.settings


class SessionUser:
    """The signed-in user, as named by a verified session token."""

    def __init__(self, name: str, email: str):
        if not name or not email:
            raise ValueError("SessionUser requires both name and email")
        self.name = name
        self.email = email

    def __repr__(self) -> str:
        return f"<SessionUser email={self.email!r}>"


def get_current_user(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> SessionUser:
    """Extract the signed-in user from the session cookie (401 if absent/invalid)."""
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")
    try:
        claims = verify_session_token(settings, token)
    except TokenError as e:
        raise HTTPException(status_code=401, detail=str(e))
    try:
        return SessionUser(name=claims.name, email=claims.email)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token: empty claims")


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_token_expire_hours * 3600,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    # Same attributes as set_session_cookie, or browsers keep the old one
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )
