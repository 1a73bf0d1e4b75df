"""
API v1 routes.

Endpoints are grouped into subdirectories: auth, support (requests and
slots) and management (dashboard, calendar, admins, notification log).
"""

from fastapi import APIRouter

from .endpoints.auth import auth
from .endpoints.support import requests, slots
from .endpoints.management import admins, dashboard, notification_logs

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])

api_router.include_router(requests.router, prefix="/requests", tags=["requests"])

api_router.include_router(slots.router, prefix="/slots", tags=["slots"])

# Admin area
api_router.include_router(dashboard.router, prefix="/admin", tags=["dashboard"])

api_router.include_router(admins.router, prefix="/admin/admins", tags=["admins"])

api_router.include_router(
    notification_logs.router,
    prefix="/admin/notifications",
    tags=["notifications"],
)
