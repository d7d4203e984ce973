"""
API v1 router.

Aggregates all v1 endpoints.
"""

from fastapi import APIRouter

from . import auth, user, system

router = APIRouter()

# Include all route modules
router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(user.router, prefix="/user", tags=["User"])
router.include_router(system.router, tags=["System"])
