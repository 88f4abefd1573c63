"""Request/response schemas for auth endpoints."""

from datetime import datetime

from pydantic import Field, field_validator

from qms.core.roles import Role
from qms.core.security import EMAIL_MAX_LEN
from qms.schemas.base import ApiModel


class LoginRequest(ApiModel):
    """Credentials for login."""

    email: str = Field(..., min_length=3, max_length=EMAIL_MAX_LEN, description="Email")
    password: str = Field(..., min_length=1, max_length=1024, description="Password")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserSummary(ApiModel):
    """Identity returned with a successful login."""

    id: int
    name: str
    email: str
    role: Role
    tenant_id: int | None = None


class LoginResponse(ApiModel):
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    user: UserSummary


class RefreshRequest(ApiModel):
    refresh_token: str = Field(..., min_length=1, max_length=4096)


class RefreshResponse(ApiModel):
    access_token: str
    token_type: str = "bearer"
    # Present only when refresh token rotation is enabled
    refresh_token: str | None = None


class LogoutRequest(ApiModel):
    refresh_token: str | None = Field(default=None, max_length=4096)


class LogoutResponse(ApiModel):
    ok: bool = True


class AccessClaims(ApiModel):
    """Decoded access token claims, exposed to route dependencies. Never persisted."""

    subject: int
    role: Role
    tenant_id: int | None = None
    issued_at: datetime
    expires_at: datetime
