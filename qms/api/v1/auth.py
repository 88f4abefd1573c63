"""JWT login, refresh and logout endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from qms.api.v1.deps import CurrentClaims
from qms.core.config import get_settings
from qms.core.database import get_db
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
from qms.services import auth as auth_service

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> LoginResponse:
    """
    Authenticate with email and password; returns an access token and a refresh token.
    Include the access token in the Authorization header as: Bearer <accessToken>

    401 for unknown email or wrong password, 403 for disabled accounts, 423 while locked.
    """
    result = auth_service.login(
        db, body.email, body.password, get_settings(), request=request
    )
    user = result.user
    return LoginResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        user=UserSummary(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            tenant_id=user.client_id,
        ),
    )


@router.post("/refresh", response_model=RefreshResponse, response_model_exclude_none=True)
def refresh(
    body: RefreshRequest,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> RefreshResponse:
    """Exchange a registered, unrevoked refresh token for a new access token."""
    result = auth_service.refresh(db, body.refresh_token, get_settings(), request=request)
    return RefreshResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
    )


@router.post("/logout", response_model=LogoutResponse)
def logout(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    body: LogoutRequest | None = None,
) -> LogoutResponse:
    """Revoke the presented refresh token. Always answers ok, whether or not it matched."""
    token = body.refresh_token if body is not None else None
    auth_service.logout(db, token, get_settings(), request=request)
    return LogoutResponse(ok=True)


@router.get("/me", response_model=AccessClaims)
def me(claims: CurrentClaims) -> AccessClaims:
    """Return the claims of the presented access token."""
    return claims
