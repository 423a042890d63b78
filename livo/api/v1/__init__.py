"""API v1 routes."""

from fastapi import APIRouter

from livo.api.v1 import auth, health, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/user-manager", tags=["user-manager"])
