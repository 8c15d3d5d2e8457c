"""Tweet service — short text posts owned by users.

Update and delete look tweets up by (id, owner) together, so another
user's tweet is indistinguishable from a missing one.
"""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.db.models import Tweet, User
from vidshare.errors import BadRequestError, NotFoundError


class TweetService:
    """Business logic for tweets."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _require_user(self, user_id: uuid.UUID) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def _owned(self, tweet_id: uuid.UUID, owner_id: uuid.UUID, action: str) -> Tweet:
        result = await self.db.execute(
            select(Tweet).where(Tweet.id == tweet_id, Tweet.owner_id == owner_id)
        )
        tweet = result.scalars().first()
        if tweet is None:
            raise NotFoundError(
                f"Tweet not found or you do not have permission to {action} this tweet"
            )
        return tweet

    async def create(self, owner_id: uuid.UUID, content: Optional[str]) -> Tweet:
        if not content or not content.strip():
            raise BadRequestError("Tweet content is required")
        user = await self._require_user(owner_id)

        tweet = Tweet(owner_id=user.id, content=content)
        self.db.add(tweet)
        await self.db.commit()
        return tweet

    async def list_for_user(self, user_id: uuid.UUID) -> list[Tweet]:
        await self._require_user(user_id)
        result = await self.db.execute(
            select(Tweet)
            .where(Tweet.owner_id == user_id)
            .order_by(Tweet.created_at.desc())
        )
        return list(result.scalars().all())

    async def update(
        self, tweet_id: uuid.UUID, owner_id: uuid.UUID, content: Optional[str]
    ) -> Tweet:
        if not content or not content.strip():
            raise BadRequestError("Content is required to update the tweet")
        tweet = await self._owned(tweet_id, owner_id, "update")
        tweet.content = content
        await self.db.commit()
        return tweet

    async def delete(self, tweet_id: uuid.UUID, owner_id: uuid.UUID) -> None:
        tweet = await self._owned(tweet_id, owner_id, "delete")
        await self.db.delete(tweet)
        await self.db.commit()
