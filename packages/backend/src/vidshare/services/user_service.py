"""User service — registration, credential checks, lookups.

Learn: Validation errors here are BadRequestError (400) rather than
pydantic's 422 because the rules are business rules (non-blank after
trimming, email shape, uniqueness) and the client expects one envelope
format for all of them.
"""

import re
import uuid
from typing import Optional

import structlog
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.auth.password import hash_password, verify_password
from vidshare.db.models import User
from vidshare.errors import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
)

logger = structlog.get_logger()

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DUPLICATE_USER = "User with this email or username already exist"


def _require(value: Optional[str], field: str) -> str:
    if not value or not value.strip():
        raise BadRequestError(f"{field} is required")
    return value.strip()


class UserService:
    """Business logic for user accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def register(
        self,
        fullname: Optional[str],
        email: Optional[str],
        username: Optional[str],
        password: Optional[str],
        avatar: Optional[str],
        cover_image: Optional[str] = None,
    ) -> User:
        fullname = _require(fullname, "Fullname")
        email = _require(email, "Email")
        if not EMAIL_RE.match(email):
            raise BadRequestError("Invalid email format")
        username = _require(username, "Username").lower()
        _require(password, "Password")
        if not avatar or not avatar.strip():
            raise BadRequestError("Avatar file is required")

        if await self._find_existing(username, email) is not None:
            raise ConflictError(DUPLICATE_USER)

        user = User(
            fullname=fullname,
            email=email,
            username=username,
            password_hash=hash_password(password),
            avatar=avatar.strip(),
            cover_image=(cover_image or "").strip(),
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as e:
            # A concurrent registration took the username or email first
            await self.db.rollback()
            logger.info("user.register_conflict", username=username)
            raise ConflictError(DUPLICATE_USER) from e
        logger.info("user.registered", user_id=str(user.id), username=username)
        return user

    async def _find_existing(self, username: str, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(or_(User.username == username, User.email == email))
        )
        return result.scalars().first()

    async def authenticate(
        self,
        password: str,
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> User:
        """Look up a user by username or email and check the password."""
        if not username and not email:
            raise BadRequestError("username or email is required")

        clauses = []
        if username:
            clauses.append(User.username == username.lower())
        if email:
            clauses.append(User.email == email)
        result = await self.db.execute(select(User).where(or_(*clauses)))
        user = result.scalars().first()
        if user is None:
            raise NotFoundError("User does not exist")

        if not verify_password(password, user.password_hash):
            logger.info("user.login_failed", user_id=str(user.id))
            raise UnauthorizedError("Invalid user credentials")
        return user

    async def get_user(self, user_id: uuid.UUID) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def get_by_username(self, username: str) -> User:
        result = await self.db.execute(
            select(User).where(User.username == username.lower())
        )
        user = result.scalars().first()
        if user is None:
            raise NotFoundError("User not found")
        return user
