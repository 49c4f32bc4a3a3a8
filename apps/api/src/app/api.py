from fastapi import APIRouter

from app.modules.activities import router as activities_router
from app.modules.approvals import admin_router
from app.modules.auth import router as auth_router
from app.modules.events import router as events_router
from app.modules.notifications import router as notifications_router
from app.modules.organizations.router import router as organizations_router
from app.modules.platform_settings import router as settings_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(admin_router, prefix="/admin", tags=["Admin - Approvals"])

api_router.include_router(
    organizations_router, prefix="/organizations", tags=["Organizations"]
)

api_router.include_router(events_router, prefix="/events", tags=["Events"])

api_router.include_router(
    notifications_router, prefix="/notifications", tags=["Notifications"]
)

api_router.include_router(activities_router, prefix="/activities", tags=["Admin - Activities"])

api_router.include_router(settings_router, prefix="/settings", tags=["Settings"])
