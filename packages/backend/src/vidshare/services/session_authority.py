"""Session token authority — issues, rotates, verifies and revokes credentials.

Learn: Each user has exactly ONE live refresh token, stored verbatim in
users.refresh_token. There is no revocation list:
- issue()   overwrites the slot with a freshly signed refresh token
- refresh() accepts a token only if it still equals the slot, then rotates
- logout()  clears the slot

Once a refresh token has been rotated away it no longer equals the slot,
so replaying it (e.g. a stolen cookie) is rejected even though its
signature and expiry are still valid.

Rotation is a compare-and-swap:

    UPDATE users SET refresh_token = :new
    WHERE id = :id AND refresh_token = :presented

If two refreshes race with the same token, only one UPDATE matches a row;
the loser gets 401 instead of silently overwriting the winner.

Every refresh failure becomes the SAME 401 response. The specific reason
(expired, tampered, replayed, unknown user) is logged, never returned,
so callers can't tell which check failed.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.auth.jwt import (
    TokenError,
    create_access_token,
    create_refresh_token,
    verify_access_token,
    verify_refresh_token,
)
from vidshare.db.models import User
from vidshare.errors import InternalError, UnauthorizedError

logger = structlog.get_logger()

INVALID_REFRESH_TOKEN = "Invalid refresh token"
INVALID_ACCESS_TOKEN = "Invalid access token"


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


class RefreshRejected(Exception):
    """A refresh check failed. The message is for logs only."""


class SessionTokenAuthority:
    """Issues and rotates access/refresh token pairs for users."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _mint(user: User) -> TokenPair:
        return TokenPair(
            access_token=create_access_token(
                str(user.id), username=user.username, email=user.email
            ),
            refresh_token=create_refresh_token(str(user.id)),
        )

    # ─── Issue ───────────────────────────────────────────

    async def issue(self, user: User) -> TokenPair:
        """Mint a new pair and store the refresh token on the user.

        Only the refresh_token column is written; nothing else on the
        user is re-validated.
        """
        # rollback() expires the user, so keep the id as a plain value
        user_id = user.id
        pair = self._mint(user)
        try:
            await self.db.execute(
                update(User)
                .where(User.id == user_id)
                .values(refresh_token=pair.refresh_token)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("session.issue_failed", user_id=str(user_id), error=str(e))
            raise InternalError(
                "Something went wrong while generating refresh and access token"
            ) from e

        logger.info("session.issued", user_id=str(user_id))
        return pair

    # ─── Refresh ─────────────────────────────────────────

    async def refresh(self, presented: Optional[str]) -> tuple[User, TokenPair]:
        """Exchange a live refresh token for a new pair.

        Returns the user and the new pair. Raises UnauthorizedError for
        any failure.
        """
        if not presented:
            raise UnauthorizedError("Unauthorized request")

        try:
            return await self._rotate(presented)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.warning("session.refresh_rejected", reason=f"storage: {e}")
            raise UnauthorizedError(INVALID_REFRESH_TOKEN) from e
        except Exception as e:
            logger.warning("session.refresh_rejected", reason=str(e))
            raise UnauthorizedError(INVALID_REFRESH_TOKEN) from e

    async def _rotate(self, presented: str) -> tuple[User, TokenPair]:
        payload = verify_refresh_token(presented)
        user_id = uuid.UUID(payload["sub"])

        result = await self.db.execute(
            select(User)
            .where(User.id == user_id)
            .execution_options(populate_existing=True)
        )
        user = result.scalars().first()
        if user is None:
            raise RefreshRejected(f"Unknown user {user_id}")

        if user.refresh_token != presented:
            raise RefreshRejected("Refresh token is expired or used")

        pair = self._mint(user)
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id, User.refresh_token == presented)
            .values(refresh_token=pair.refresh_token)
        )
        if result.rowcount != 1:
            await self.db.rollback()
            raise RefreshRejected("Refresh token was rotated concurrently")
        await self.db.commit()

        logger.info("session.rotated", user_id=str(user_id))
        return user, pair

    # ─── Verify ──────────────────────────────────────────

    @staticmethod
    def verify(presented: Optional[str]) -> uuid.UUID:
        """Check an access token's signature and expiry; return the user id.

        Stateless — no database lookup.
        """
        if not presented:
            raise UnauthorizedError("Unauthorized request")
        try:
            payload = verify_access_token(presented)
            return uuid.UUID(payload["sub"])
        except (TokenError, ValueError) as e:
            logger.debug("session.access_rejected", reason=str(e))
            raise UnauthorizedError(INVALID_ACCESS_TOKEN) from e

    # ─── Logout ──────────────────────────────────────────

    async def logout(self, user_id: uuid.UUID) -> bool:
        """Clear the user's refresh slot. Returns False if no such user."""
        result = await self.db.execute(
            update(User).where(User.id == user_id).values(refresh_token=None)
        )
        await self.db.commit()
        logger.info("session.logged_out", user_id=str(user_id))
        return result.rowcount == 1
