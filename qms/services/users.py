"""Account administration: create accounts, change status, reset passwords."""

import logging
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from qms.core.errors import ConflictError, InputValidationError, NotFoundError
from qms.core.roles import AccountStatus, Role
from qms.core.security import hash_password
from qms.models import Client, User
from qms.services import refresh_registry
from qms.services.lockout import LockState, admin_reset

logger = logging.getLogger(__name__)


def get_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def create_user(
    session: Session,
    *,
    email: str,
    password: str,
    name: str,
    role: Role,
    client_id: int | None = None,
) -> User:
    """
    Add an ACTIVE account. The caller commits.

    CLIENT accounts must reference an existing client; other roles never carry one.
    """
    email = email.strip().lower()
    if role == Role.CLIENT:
        if client_id is None:
            raise InputValidationError("clientId is required for CLIENT accounts")
        if session.get(Client, client_id) is None:
            raise InputValidationError("clientId does not reference a client")
    else:
        client_id = None

    if session.query(User.id).filter(User.email == email).first() is not None:
        raise ConflictError("Email already exists")

    user = User(
        email=email,
        name=name.strip(),
        password_hash=hash_password(password),
        role=role.value,
        client_id=client_id,
        status=AccountStatus.ACTIVE.value,
        failed_login_count=0,
        lock_until=None,
    )
    session.add(user)
    session.flush()
    logger.info("User created", extra={"user_id": user.id, "role": role.value})
    return user


def set_status(
    session: Session, user: User, status: AccountStatus, now: datetime | None = None
) -> User:
    """
    Administrative status change. The caller commits.

    ACTIVE is an administrative unlock (counters cleared). LOCKED without a timestamp
    holds until an admin reactivates. DISABLED also revokes every refresh token.
    """
    now = now or datetime.now(UTC)
    match status:
        case AccountStatus.ACTIVE:
            admin_reset(LockState.of(user)).apply_to(user)
        case AccountStatus.LOCKED:
            user.status = AccountStatus.LOCKED.value
            user.lock_until = None
        case AccountStatus.DISABLED:
            user.status = AccountStatus.DISABLED.value
            refresh_registry.revoke_all_for_user(session, user.id, now)
    logger.info("User status changed", extra={"user_id": user.id, "status": status.value})
    return user


def reset_password(
    session: Session, user: User, password: str, now: datetime | None = None
) -> User:
    """Replace the password hash and revoke the account's refresh tokens. The caller commits."""
    user.password_hash = hash_password(password)
    revoked = refresh_registry.revoke_all_for_user(session, user.id, now)
    logger.info(
        "User password reset",
        extra={"user_id": user.id, "refresh_tokens_revoked": revoked},
    )
    return user
