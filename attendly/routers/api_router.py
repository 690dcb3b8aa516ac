from fastapi import APIRouter
from attendly.routers import (
    attendance, auth, badges, leave, leave_analytics, leave_types, notifications
)

# Every router is aggregated here; main.py only imports this hub.
api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(attendance.router, tags=["Attendance"])
api_router.include_router(leave.router, tags=["Leaves"])
api_router.include_router(leave_types.router, tags=["Leave Types"])
api_router.include_router(leave_analytics.router, tags=["Leave Analytics"])
api_router.include_router(notifications.router, tags=["Notifications"])
api_router.include_router(badges.router, tags=["Badges"])
