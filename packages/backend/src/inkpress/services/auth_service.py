"""Auth flows — signup, signin, forgot/reset password, profile photo.

Learn: Each flow is a short linear sequence with early-exit validation:
check input → consult the store → hash/verify or issue a token → write.
AuthService raises taxonomy errors (inkpress.errors); the routes turn them
into HTTP responses. bcrypt is CPU-bound, so hashing runs in the
threadpool and other in-flight requests keep moving.

Signin deliberately gives the same error for "no such user" and "wrong
password" so the endpoint can't be used to probe which emails exist.
"""

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from inkpress.auth.jwt import (
    TokenError,
    create_reset_token,
    create_session_token,
    verify_reset_token,
)
from inkpress.auth.password import MAX_PASSWORD_BYTES, hash_password, verify_password
from inkpress.config import Settings
from inkpress.db.models import EMAIL_MAX_LENGTH, NAME_MAX_LENGTH, Profile, User
from inkpress.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    MailDeliveryError,
    NotFoundError,
    ValidationError,
)
from inkpress.services.mailer import Mailer
from inkpress.services.reset_ledger import ResetTokenLedger, TokenAlreadyUsedError
from inkpress.services.user_store import UserStore

logger = structlog.get_logger()

INVALID_RESET_MESSAGE = "User not found or token is invalid/expired"


class AuthService:
    def __init__(
        self,
        db: AsyncSession,
        settings: Settings,
        mailer: Optional[Mailer] = None,
    ):
        self.settings = settings
        self.users = UserStore(db)
        self.ledger = ResetTokenLedger(db)
        self.mailer = mailer

    # ─── Password helpers ──────────────────────────────────

    def _check_password_length(self, password: str) -> None:
        minimum = self.settings.password_min_length
        if len(password) < minimum:
            raise ValidationError(
                f"Password must be at least {minimum} characters long"
            )
        # Bytes past the limit would be ignored by bcrypt
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes long"
            )

    async def _hash(self, password: str) -> str:
        return await run_in_threadpool(
            hash_password, password, self.settings.bcrypt_rounds
        )

    # ─── Signup / Signin ───────────────────────────────────

    async def signup(
        self,
        name: Optional[str],
        email: Optional[str],
        password: Optional[str],
    ) -> User:
        """Register a new user. The password is stored only as a hash."""
        if not name or not email or not password:
            raise ValidationError("All fields are required")
        # Longer values would fail the INSERT as a database error
        if len(name) > NAME_MAX_LENGTH:
            raise ValidationError(
                f"Name must be at most {NAME_MAX_LENGTH} characters long"
            )
        if len(email) > EMAIL_MAX_LENGTH:
            raise ValidationError(
                f"Email must be at most {EMAIL_MAX_LENGTH} characters long"
            )
        self._check_password_length(password)

        # Fast path; the unique constraint on users.email is the real guard
        if await self.users.find_by_email(email):
            raise DuplicateEmailError()

        password_hash = await self._hash(password)
        user = await self.users.create(name, email, password_hash)
        logger.info("auth.signup_succeeded", user_id=str(user.id), email=email)
        return user

    async def signin(self, email: Optional[str], password: Optional[str]) -> str:
        """Check credentials and return a fresh session token."""
        if not email or not password:
            raise ValidationError("All fields are required")

        user = await self.users.find_by_email(email)
        if user is None:
            logger.info("auth.signin_failed", email=email, reason="unknown_email")
            raise InvalidCredentialsError()

        matches = await run_in_threadpool(verify_password, password, user.password_hash)
        if not matches:
            logger.info("auth.signin_failed", email=email, reason="bad_password")
            raise InvalidCredentialsError()

        logger.info("auth.signin_succeeded", user_id=str(user.id))
        return create_session_token(self.settings, user.name, user.email)

    # ─── Forgot / Reset password ───────────────────────────

    def reset_link(self, token: str) -> str:
        return f"{self.settings.client_url.rstrip('/')}/{token}"

    async def forgot_password(self, email: Optional[str]) -> None:
        """Mail a reset link to the account owner.

        Unknown emails are a 404 unless conceal_unknown_reset_email is on,
        in which case the caller can't tell the difference (no mail goes out).
        """
        if not email:
            raise ValidationError("Email is required!")

        user = await self.users.find_by_email(email)
        if user is None:
            logger.info("auth.reset_requested_unknown", email=email)
            if self.settings.conceal_unknown_reset_email:
                return
            raise NotFoundError("User not found")

        if self.mailer is None:
            raise MailDeliveryError()

        token = create_reset_token(self.settings, user.email)
        sent = await self.mailer.send_password_reset(
            user.email, self.reset_link(token), user.name
        )
        if not sent:
            logger.error("auth.reset_mail_failed", email=user.email)
            raise MailDeliveryError()
        logger.info("auth.reset_requested", user_id=str(user.id))

    async def reset_password(
        self, token: Optional[str], password: Optional[str]
    ) -> None:
        """Replace the password of the user a valid, unused reset token names.

        Bad, expired or already-used tokens and vanished users all look the
        same to the caller: NotFoundError with one merged message.
        """
        if not token:
            raise ValidationError("Token is required!")
        if not password:
            raise ValidationError("New password is required!")
        self._check_password_length(password)

        try:
            claims = verify_reset_token(self.settings, token)
        except TokenError as e:
            logger.info("auth.reset_token_rejected", reason=str(e))
            raise NotFoundError(INVALID_RESET_MESSAGE)

        user = await self.users.find_by_email(claims.email)
        if user is None:
            raise NotFoundError(INVALID_RESET_MESSAGE)

        password_hash = await self._hash(password)
        try:
            await self.ledger.consume(claims)
        except TokenAlreadyUsedError:
            raise NotFoundError(INVALID_RESET_MESSAGE)

        # Commits the ledger row together with the new hash
        await self.users.update_password_hash(user, password_hash)
        logger.info("auth.password_reset", email=claims.email)

    # ─── Profile photo ─────────────────────────────────────

    async def _require_user(self, email: str) -> User:
        user = await self.users.find_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def upload_profile_photo(
        self,
        email: str,
        image: Optional[bytes],
        *,
        content_type: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> Profile:
        user = await self._require_user(email)
        profile = await self.users.save_profile(
            user, image, content_type=content_type, filename=filename
        )
        logger.info(
            "profile.photo_uploaded",
            user_id=str(user.id),
            size=len(image) if image else 0,
        )
        return profile

    async def remove_profile_photo(self, email: str) -> None:
        user = await self._require_user(email)
        profile = await self.users.get_profile(user)
        if profile is None:
            raise NotFoundError("Profile not found")
        await self.users.delete_profile(profile)
        logger.info("profile.photo_removed", user_id=str(user.id))
