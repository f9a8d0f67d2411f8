"""Reset token ledger — makes stateless reset tokens single-use.

Learn: The ledger is "insert if absent" on the token's jti. The primary
key does the work: the second insert for the same jti fails, no matter
how close together the two requests arrive.

consume() only flushes. The caller commits, so the jti and the new
password hash land in the same transaction: if the password update fails,
the token is still usable.
"""

from datetime import datetime, timezone

import structlog
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from inkpress.auth.jwt import ResetClaims
from inkpress.db.models import UsedResetToken

logger = structlog.get_logger()


class TokenAlreadyUsedError(Exception):
    pass


class ResetTokenLedger:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def consume(self, claims: ResetClaims) -> None:
        """Record the token as used. Raises TokenAlreadyUsedError on reuse."""
        self.db.add(
            UsedResetToken(
                jti=claims.jti,
                email=claims.email,
                expires_at=claims.expires_at,
            )
        )
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning("reset_ledger.reuse", email=claims.email)
            raise TokenAlreadyUsedError(claims.jti) from e

    async def purge_expired(self, now: datetime | None = None) -> int:
        """Delete ledger rows whose tokens have expired. Returns the count."""
        cutoff = now or datetime.now(timezone.utc)
        result = await self.db.execute(
            delete(UsedResetToken).where(UsedResetToken.expires_at < cutoff)
        )
        await self.db.commit()
        return result.rowcount or 0
