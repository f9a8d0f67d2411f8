"""API route aggregation.

All routers registered here get mounted in main.py under /api.

Learn: Auth is applied per route in the auth router (signout and the
profile routes depend on get_current_user); the blog feed and health
check are open.
"""

from fastapi import APIRouter

from inkpress.api.auth import router as auth_router
from inkpress.api.blog import router as blog_router
from inkpress.api.health import router as health_router

api_router = APIRouter(prefix="/api")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(blog_router, tags=["blog"])
