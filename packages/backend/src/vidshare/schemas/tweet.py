"""Pydantic schemas for tweets."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TweetCreate(BaseModel):
    content: Optional[str] = None


class TweetUpdate(BaseModel):
    content: Optional[str] = None


class TweetRead(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID = Field(serialization_alias="owner")
    content: str
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    model_config = ConfigDict(from_attributes=True)
