"""API v1 routes."""

from fastapi import APIRouter

from qms.api.v1 import audit, auth, clients, equipment, health, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(audit.router, prefix="/audit", tags=["audit"])
router.include_router(clients.router, prefix="/clients", tags=["clients"])
router.include_router(equipment.router, prefix="/equipment", tags=["equipment"])
