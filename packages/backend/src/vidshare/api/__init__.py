"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects all routes in each router
without modifying individual handlers. Health and the user/session
router are open; logout and /me inside it declare their own dependency.
"""

from fastapi import APIRouter, Depends

from vidshare.api.auth import router as auth_router
from vidshare.api.health import router as health_router
from vidshare.api.tweets import router as tweets_router
from vidshare.auth.dependencies import get_current_user

# All protected routers require a valid access token
_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api/v1")

# Open routes — no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["users"])

# Protected routes
api_router.include_router(tweets_router, tags=["tweets"], dependencies=_auth)
