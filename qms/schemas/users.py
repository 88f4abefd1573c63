"""Schemas for user administration (admin only)."""

from datetime import datetime

from pydantic import Field, field_validator, model_validator

from qms.core.roles import AccountStatus, Role
from qms.core.security import EMAIL_MAX_LEN, PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from qms.schemas.base import ApiModel


class UserCreate(ApiModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: str = Field(..., min_length=3, max_length=EMAIL_MAX_LEN)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    role: Role
    client_id: int | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError("email must be an address")
        return v

    @model_validator(mode="after")
    def tenant_matches_role(self) -> "UserCreate":
        if self.role == Role.CLIENT and self.client_id is None:
            raise ValueError("clientId is required for CLIENT accounts")
        if self.role != Role.CLIENT:
            self.client_id = None
        return self


class UserStatusUpdate(ApiModel):
    status: AccountStatus


class PasswordReset(ApiModel):
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class UserOut(ApiModel):
    """User entry for admin views (no password hash)."""

    id: int
    name: str
    email: str
    role: Role
    status: AccountStatus
    client_id: int | None = None
    failed_login_count: int = 0
    lock_until: datetime | None = None
    last_login_at: datetime | None = None
    created_at: datetime | None = None


class UsersListResponse(ApiModel):
    """Response for GET /users (admin only)."""

    users: list[UserOut]
