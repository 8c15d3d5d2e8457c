"""Pydantic schemas for users and sessions.

Learn: Request fields are Optional on purpose — "missing" and "blank"
are both reported by the service as the same 400 "<Field> is required".
UserRead never includes password_hash or refresh_token.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    fullname: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    avatar: Optional[str] = Field(None, description="URL of the uploaded avatar")
    cover_image: Optional[str] = Field(None, alias="coverImage")

    model_config = ConfigDict(populate_by_name=True)


class LoginRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: str = ""


class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = Field(None, alias="refreshToken")

    model_config = ConfigDict(populate_by_name=True)


class UserRead(BaseModel):
    id: uuid.UUID
    username: str
    email: str
    fullname: str
    avatar: str
    cover_image: str = Field(serialization_alias="coverImage")
    created_at: datetime = Field(serialization_alias="createdAt")

    model_config = ConfigDict(from_attributes=True)


class SessionTokens(BaseModel):
    access_token: str = Field(serialization_alias="accessToken")
    refresh_token: str = Field(serialization_alias="refreshToken")
    user: Optional[UserRead] = None
