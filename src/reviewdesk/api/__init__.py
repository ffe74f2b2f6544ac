"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects all routes in each router
without modifying individual handlers. Health and auth routers are
open; files applies auth per route because its proxy accepts a
query-string token.
"""

from fastapi import APIRouter, Depends

from reviewdesk.api.auth import router as auth_router
from reviewdesk.api.files import router as files_router
from reviewdesk.api.health import router as health_router
from reviewdesk.api.profile import router as profile_router
from reviewdesk.api.registrations import router as registrations_router
from reviewdesk.api.users import router as users_router
from reviewdesk.auth.dependencies import require_admin, require_auth

_auth = [Depends(require_auth)]
_admin = [Depends(require_admin)]

api_router = APIRouter(prefix="/api")

# Open routes: no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Authenticated routes
api_router.include_router(profile_router, tags=["profile"], dependencies=_auth)
api_router.include_router(files_router, tags=["files"])

# Admin routes
api_router.include_router(registrations_router, tags=["registrations"], dependencies=_admin)
api_router.include_router(users_router, tags=["admin"], dependencies=_admin)
