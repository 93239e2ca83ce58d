# reportflow/api/v1/api.py
from fastapi import APIRouter
from reportflow.api.v1.endpoints import admin, dashboard, notifications, reports, users, verification

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
api_router.include_router(reports.router, prefix="/reports", tags=["Reports"])
api_router.include_router(verification.router, prefix="/reports", tags=["Verification"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
