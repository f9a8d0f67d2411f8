"""Credential store — users and their profile photos.

Learn: UserStore is the only code that touches the users/profiles tables.
Email is the natural key. Duplicate detection relies on the unique
constraint: two concurrent signups can both pass the existence check in
the handler, but only one INSERT survives, and the loser surfaces here as
DuplicateEmailError.

Any other database failure is re-raised as PersistenceError so callers
see one generic "store failed" signal.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from inkpress.db.models import Profile, User
from inkpress.errors import DuplicateEmailError, PersistenceError

logger = structlog.get_logger()


class UserStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def _persistence(self, operation: str):
        try:
            yield
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("store.failed", operation=operation, error=str(e))
            raise PersistenceError() from e

    # ─── Users ─────────────────────────────────────────────

    async def find_by_email(self, email: str) -> Optional[User]:
        async with self._persistence("find_by_email"):
            result = await self.db.execute(select(User).where(User.email == email))
            return result.scalars().first()

    async def create(self, name: str, email: str, password_hash: str) -> User:
        """Insert a new user. Raises DuplicateEmailError if the email is taken."""
        user = User(name=name, email=email, password_hash=password_hash)
        try:
            self.db.add(user)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.info("store.duplicate_email", email=email)
            raise DuplicateEmailError() from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("store.failed", operation="create", error=str(e))
            raise PersistenceError() from e
        await self.db.refresh(user)
        return user

    async def update_password_hash(self, user: User, password_hash: str) -> None:
        """Replace the stored hash and commit (along with anything else
        pending in this session)."""
        async with self._persistence("update_password_hash"):
            user.password_hash = password_hash
            await self.db.commit()

    # ─── Profiles ──────────────────────────────────────────

    async def get_profile(self, user: User) -> Optional[Profile]:
        async with self._persistence("get_profile"):
            result = await self.db.execute(
                select(Profile).where(Profile.user_id == user.id)
            )
            return result.scalars().first()

    async def save_profile(
        self,
        user: User,
        image: Optional[bytes],
        *,
        content_type: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> Profile:
        """Create the user's profile, or replace the image on the existing one."""
        profile = await self.get_profile(user)
        async with self._persistence("save_profile"):
            if profile is None:
                profile = Profile(user_id=user.id)
                self.db.add(profile)
            profile.image = image
            profile.content_type = content_type
            profile.filename = filename
            await self.db.commit()
            await self.db.refresh(profile)
            return profile

    async def delete_profile(self, profile: Profile) -> None:
        async with self._persistence("delete_profile"):
            await self.db.execute(delete(Profile).where(Profile.id == profile.id))
            await self.db.commit()
