from fastapi import APIRouter
from app.routers import auth, compensation, time_entries, admin

# Centralized API router hub
# Routers are aggregated here, and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(time_entries.router, tags=["Time Tracking"])
api_router.include_router(compensation.router, tags=["Compensation"])
api_router.include_router(admin.router, tags=["Administration"])
