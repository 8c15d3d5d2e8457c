"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers (or on whole
routers via include_router(dependencies=...)) to gate requests on a
valid access token. The token is read from the accessToken cookie
first, then from an "Authorization: Bearer <token>" header.

Verification is stateless — signature and expiry only. Handlers that
need the full user row load it themselves.
"""

import uuid
from typing import Optional

from fastapi import Cookie, Header

from vidshare.services.session_authority import SessionTokenAuthority

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


class CurrentIdentity:
    """The authenticated user making the request."""

    def __init__(self, user_id: uuid.UUID):
        self.user_id = user_id


def _bearer(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return None


async def get_current_user(
    access_token: Optional[str] = Cookie(None, alias=ACCESS_COOKIE),
    authorization: Optional[str] = Header(None),
) -> CurrentIdentity:
    """Extract current identity (required — 401 if missing or invalid)."""
    token = access_token or _bearer(authorization)
    return CurrentIdentity(user_id=SessionTokenAuthority.verify(token))
