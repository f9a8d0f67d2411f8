"""Auth API — signup, signin, signout, password reset, profile photo.

Learn: Routes for the account lifecycle:
- POST /auth/signup → create a user (201)
- POST /auth/signin → credentials → session cookie
- POST /auth/signout → clear the session cookie (requires session)
- POST /auth/forgetpassword → mail a reset link
- PUT /auth/resetpassword/:token → set a new password
- POST /auth/profile/upload → store a profile photo (requires session)
- DELETE /auth/profile/remove → drop the profile photo (requires session)

Every flow catches failures at the top: taxonomy errors keep their status
and message, anything else is logged and becomes a bare 500. The first
three flows answer with {"message": ...}; the rest use {"error": ...}
for failures, which is what the browser client reads.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from inkpress.auth.dependencies import (
    SessionUser,
    clear_session_cookie,
    get_app_settings,
    get_current_user,
    set_session_cookie,
)
from inkpress.config import Settings
from inkpress.db.engine import get_db
from inkpress.errors import InkpressError
from inkpress.services.auth_service import AuthService
from inkpress.services.mailer import Mailer

logger = structlog.get_logger()

router = APIRouter(prefix="/auth")


# ─── Schemas ─────────────────────────────────────────────
# Fields are optional so a missing one reaches the flow and gets the
# flow's own 400 message instead of a generic validation error.


class SignupRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class SigninRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    password: Optional[str] = None


# ─── Helpers ─────────────────────────────────────────────


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    mailer: Mailer = Depends(get_mailer),
) -> AuthService:
    return AuthService(db, settings, mailer)


def _fail(e: InkpressError, key: str) -> JSONResponse:
    return JSONResponse(status_code=e.status_code, content={key: e.message})


def _crash(event: str, key: str, message: str) -> JSONResponse:
    logger.exception(event)
    return JSONResponse(status_code=500, content={key: message})


# ─── Signup / Signin / Signout ───────────────────────────


@router.post("/signup", status_code=201)
async def signup(
    body: Optional[SignupRequest] = None,
    svc: AuthService = Depends(get_auth_service),
):
    """Create a new user account."""
    body = body or SignupRequest()
    try:
        await svc.signup(body.name, body.email, body.password)
    except InkpressError as e:
        return _fail(e, "message")
    except Exception:
        return _crash("auth.signup_error", "message", "Server error")
    return JSONResponse(status_code=201, content={"message": "User created successfully"})


@router.post("/signin")
async def signin(
    body: Optional[SigninRequest] = None,
    svc: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
):
    """Login with email and password → session cookie."""
    body = body or SigninRequest()
    try:
        token = await svc.signin(body.email, body.password)
    except InkpressError as e:
        return _fail(e, "message")
    except Exception:
        return _crash("auth.signin_error", "message", "Server error")

    response = JSONResponse(content={"message": "User logged in successfully"})
    set_session_cookie(response, token, settings)
    return response


@router.post("/signout")
async def signout(
    user: SessionUser = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
):
    """Logout — the token is stateless, so clearing the cookie is the logout."""
    try:
        response = JSONResponse(content={"message": "User logged out"})
        clear_session_cookie(response, settings)
    except Exception:
        return _crash("auth.signout_error", "message", "Server error during logout")
    logger.info("auth.signout", email=user.email)
    return response


# ─── Forgot / Reset password ─────────────────────────────


@router.post("/forgetpassword")
async def forget_password(
    body: Optional[ForgotPasswordRequest] = None,
    svc: AuthService = Depends(get_auth_service),
):
    """Mail a password reset link to the account's email."""
    body = body or ForgotPasswordRequest()
    try:
        await svc.forgot_password(body.email)
    except InkpressError as e:
        return _fail(e, "error")
    except Exception:
        return _crash(
            "auth.forgot_password_error",
            "error",
            "An error occurred while processing your request",
        )
    return {"message": "Email sent for password reset"}


async def _reset_password(
    token: Optional[str],
    body: Optional[ResetPasswordRequest],
    svc: AuthService,
):
    body = body or ResetPasswordRequest()
    try:
        await svc.reset_password(token, body.password)
    except InkpressError as e:
        return _fail(e, "error")
    except Exception:
        return _crash("auth.reset_password_error", "error", "Internal Server Error")
    return {"message": "Password reset successfully."}


@router.put("/resetpassword/{token}")
async def reset_password(
    token: str,
    body: Optional[ResetPasswordRequest] = None,
    svc: AuthService = Depends(get_auth_service),
):
    """Set a new password using the token from the reset email."""
    return await _reset_password(token, body, svc)


@router.put("/resetpassword")
async def reset_password_without_token(
    body: Optional[ResetPasswordRequest] = None,
    svc: AuthService = Depends(get_auth_service),
):
    return await _reset_password(None, body, svc)


# ─── Profile photo ──────────────────────────────────────


@router.post("/profile/upload")
async def upload_profile_photo(
    image: Optional[UploadFile] = File(None),
    user: SessionUser = Depends(get_current_user),
    svc: AuthService = Depends(get_auth_service),
):
    """Store (or replace) the signed-in user's profile photo."""
    try:
        data = await image.read() if image is not None else None
        await svc.upload_profile_photo(
            user.email,
            data,
            content_type=image.content_type if image is not None else None,
            filename=image.filename if image is not None else None,
        )
    except InkpressError as e:
        return _fail(e, "error")
    except Exception:
        return _crash("profile.upload_error", "error", "Internal Server Error")
    return {"message": "Profile Image Uploaded Successfully"}


@router.delete("/profile/remove")
async def remove_profile_photo(
    user: SessionUser = Depends(get_current_user),
    svc: AuthService = Depends(get_auth_service),
):
    """Delete the signed-in user's profile photo."""
    try:
        await svc.remove_profile_photo(user.email)
    except InkpressError as e:
        return _fail(e, "error")
    except Exception:
        return _crash("profile.remove_error", "error", "Internal Server Error")
    return {"message": "Profile Image Removed Successfully"}
