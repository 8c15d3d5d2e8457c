"""User & session API — registration, login, token refresh, logout.

Learn: Routes for the user session lifecycle:
- POST /users/register      → create an account
- POST /users/login         → username/email + password → token pair
- POST /users/refresh-token → refresh token → NEW token pair (rotation)
- POST /users/logout        → clear the stored refresh token (protected)
- GET  /users/me            → current user (protected)

Login and refresh set both tokens as http-only cookies AND return them
in the body, so browser clients and API clients both work.
"""

from typing import Optional

from fastapi import APIRouter, Cookie, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.auth.dependencies import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    CurrentIdentity,
    get_current_user,
)
from vidshare.config import settings
from vidshare.db.engine import get_db
from vidshare.errors import api_response
from vidshare.schemas.user import (
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    SessionTokens,
    UserRead,
)
from vidshare.services.session_authority import SessionTokenAuthority, TokenPair
from vidshare.services.user_service import UserService

router = APIRouter(prefix="/users")


def _cookie_attrs() -> dict:
    # Deletion must repeat these or the browser keeps the original cookie
    return {"httponly": True, "secure": settings.cookie_secure, "samesite": "lax", "path": "/"}


def _set_session_cookies(resp: JSONResponse, pair: TokenPair) -> None:
    common = _cookie_attrs()
    resp.set_cookie(
        ACCESS_COOKIE,
        pair.access_token,
        max_age=settings.access_token_expire_minutes * 60,
        **common,
    )
    resp.set_cookie(
        REFRESH_COOKIE,
        pair.refresh_token,
        max_age=settings.refresh_token_expire_days * 86400,
        **common,
    )


def _session_response(pair: TokenPair, message: str, user=None) -> JSONResponse:
    data = SessionTokens(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        user=UserRead.model_validate(user) if user is not None else None,
    )
    resp = JSONResponse(api_response(data, message))
    _set_session_cookies(resp, pair)
    return resp


# ─── Register ────────────────────────────────────────────


@router.post("/register", status_code=201)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create a new user account."""
    user = await UserService(db).register(
        fullname=body.fullname,
        email=body.email,
        username=body.username,
        password=body.password,
        avatar=body.avatar,
        cover_image=body.cover_image,
    )
    return api_response(
        UserRead.model_validate(user), "User registered successfully", status_code=201
    )


# ─── Login ───────────────────────────────────────────────


@router.post("/login")
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Login with username or email and password → token pair."""
    user = await UserService(db).authenticate(
        password=body.password, username=body.username, email=body.email
    )
    pair = await SessionTokenAuthority(db).issue(user)
    return _session_response(pair, "User logged in successfully", user=user)


# ─── Refresh ────────────────────────────────────────────


@router.post("/refresh-token")
async def refresh_token(
    body: Optional[RefreshRequest] = None,
    cookie_token: Optional[str] = Cookie(None, alias=REFRESH_COOKIE),
    db: AsyncSession = Depends(get_db),
):
    """Exchange a refresh token for a new pair. The old one stops working."""
    presented = cookie_token or (body.refresh_token if body else None)
    _, pair = await SessionTokenAuthority(db).refresh(presented)
    return _session_response(pair, "Access token refreshed")


# ─── Logout ─────────────────────────────────────────────


@router.post("/logout")
async def logout(
    identity: CurrentIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Revoke the current refresh token and clear both cookies."""
    await SessionTokenAuthority(db).logout(identity.user_id)
    resp = JSONResponse(api_response({}, "User logged out"))
    resp.delete_cookie(ACCESS_COOKIE, **_cookie_attrs())
    resp.delete_cookie(REFRESH_COOKIE, **_cookie_attrs())
    return resp


# ─── Current user ───────────────────────────────────────


@router.get("/me")
async def get_me(
    identity: CurrentIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get the current authenticated user's info."""
    user = await UserService(db).get_user(identity.user_id)
    return api_response(UserRead.model_validate(user), "Current user fetched successfully")
