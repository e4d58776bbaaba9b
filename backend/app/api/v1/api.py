"""
API v1 router combining all v1 endpoints.
"""
from fastapi import APIRouter

from app.api.v1 import health, placement_test
from app.api.v1.admin import router as admin_router

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(
    placement_test.router, prefix="/placement-test", tags=["placement-test"]
)
api_router.include_router(admin_router, prefix="/admin")
