"""User administration endpoints (admin only)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from qms.api.v1.deps import require_role
from qms.core.database import get_db
from qms.core.errors import ConflictError
from qms.core.roles import Role
from qms.models import User
from qms.schemas.auth import AccessClaims
from qms.schemas.users import (
    PasswordReset,
    UserCreate,
    UserOut,
    UsersListResponse,
    UserStatusUpdate,
)
from qms.services import audit
from qms.services import users as users_service

router = APIRouter()

AdminClaims = Annotated[AccessClaims, Depends(require_role(Role.ADMIN))]


@router.get("", response_model=UsersListResponse)
def list_users(
    _admin: AdminClaims,
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    """List all users, newest first."""
    users = db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()
    return UsersListResponse(users=[UserOut.model_validate(u) for u in users])


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreate,
    request: Request,
    admin: AdminClaims,
    db: Annotated[Session, Depends(get_db)],
) -> UserOut:
    """Create an account. 409 if the email is taken; CLIENT accounts need an existing clientId."""
    user = users_service.create_user(
        db,
        email=body.email,
        password=body.password,
        name=body.name,
        role=body.role,
        client_id=body.client_id,
    )
    audit.record_event(
        db,
        audit.USER_CREATE,
        user_id=admin.subject,
        entity_type="User",
        entity_id=user.id,
        request=request,
    )
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Email already exists") from e
    db.refresh(user)
    return UserOut.model_validate(user)


@router.patch("/{user_id}", response_model=UserOut)
def update_user_status(
    user_id: int,
    body: UserStatusUpdate,
    request: Request,
    admin: AdminClaims,
    db: Annotated[Session, Depends(get_db)],
) -> UserOut:
    """Set status to ACTIVE (unlock and clear counters), LOCKED or DISABLED."""
    user = users_service.get_user(db, user_id)
    users_service.set_status(db, user, body.status)
    audit.record_event(
        db,
        audit.USER_STATUS_UPDATE,
        user_id=admin.subject,
        entity_type="User",
        entity_id=user.id,
        request=request,
        details={"status": body.status.value},
    )
    db.commit()
    db.refresh(user)
    return UserOut.model_validate(user)


@router.put("/{user_id}/password", response_model=UserOut)
def reset_user_password(
    user_id: int,
    body: PasswordReset,
    request: Request,
    admin: AdminClaims,
    db: Annotated[Session, Depends(get_db)],
) -> UserOut:
    """Set a new password; every refresh token of the account stops working."""
    user = users_service.get_user(db, user_id)
    users_service.reset_password(db, user, body.password)
    audit.record_event(
        db,
        audit.USER_PASSWORD_RESET,
        user_id=admin.subject,
        entity_type="User",
        entity_id=user.id,
        request=request,
    )
    db.commit()
    db.refresh(user)
    return UserOut.model_validate(user)
