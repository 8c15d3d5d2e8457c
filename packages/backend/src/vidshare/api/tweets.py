"""Tweet API routes.

The whole router is mounted behind get_current_user (see api/__init__.py);
handlers still take the identity to know who the owner is.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.auth.dependencies import CurrentIdentity, get_current_user
from vidshare.db.engine import get_db
from vidshare.errors import api_response
from vidshare.schemas.tweet import TweetCreate, TweetRead, TweetUpdate
from vidshare.services.tweet_service import TweetService

router = APIRouter(prefix="/tweets")


def _svc(db: AsyncSession = Depends(get_db)) -> TweetService:
    return TweetService(db)


@router.post("", status_code=201)
async def create_tweet(
    body: TweetCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TweetService = Depends(_svc),
):
    tweet = await svc.create(identity.user_id, body.content)
    return api_response(
        TweetRead.model_validate(tweet), "Tweet created successfully", status_code=201
    )


@router.get("/user/{user_id}")
async def get_user_tweets(user_id: uuid.UUID, svc: TweetService = Depends(_svc)):
    tweets = await svc.list_for_user(user_id)
    return api_response(
        [TweetRead.model_validate(t) for t in tweets],
        "User tweets fetched successfully",
    )


@router.patch("/{tweet_id}")
async def update_tweet(
    tweet_id: uuid.UUID,
    body: TweetUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TweetService = Depends(_svc),
):
    tweet = await svc.update(tweet_id, identity.user_id, body.content)
    return api_response(TweetRead.model_validate(tweet), "Tweet updated successfully")


@router.delete("/{tweet_id}")
async def delete_tweet(
    tweet_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TweetService = Depends(_svc),
):
    await svc.delete(tweet_id, identity.user_id)
    return api_response({}, "Tweet deleted successfully")
