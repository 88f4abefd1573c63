"""Pydantic request/response schemas."""

from qms.schemas.auth import (
    AccessClaims,
    LoginRequest,
    LoginResponse,
    LogoutRequest,
    LogoutResponse,
    RefreshRequest,
    RefreshResponse,
    UserSummary,
)
from qms.schemas.health import HealthResponse

__all__ = [
    "AccessClaims",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "LogoutRequest",
    "LogoutResponse",
    "RefreshRequest",
    "RefreshResponse",
    "UserSummary",
]
