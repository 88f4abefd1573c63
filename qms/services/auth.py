"""Login, token refresh and logout.

Login runs the account through the lockout gate, verifies the password, applies one
lockout transition to the row, and commits it together with the audit entry and, on
success, the refresh token registry row.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from functools import lru_cache
from typing import TYPE_CHECKING

from fastapi import Request
from sqlalchemy.orm import Session

from qms.core.errors import AccountDisabledError, AccountLockedError, UnauthenticatedError
from qms.core.roles import AccountStatus
from qms.core.security import (
    TokenError,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)
from qms.models import User
from qms.services import audit, refresh_registry
from qms.services.lockout import (
    GateVerdict,
    LockoutPolicy,
    LockState,
    check_gate,
    record_failure,
    record_success,
)

if TYPE_CHECKING:
    from qms.core.config import Settings

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password."
INVALID_REFRESH = "Invalid refresh token."


@dataclass(frozen=True)
class LoginResult:
    user: User
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class RefreshResult:
    access_token: str
    refresh_token: str | None = None


@lru_cache(maxsize=4)
def _dummy_password_hash(rounds: int) -> str:
    # Checked when the email is unknown so both failure paths cost one bcrypt check.
    return hash_password("qms-unknown-account-placeholder", rounds=rounds)


def issue_access_token(user: User, settings: "Settings") -> str:
    return create_access_token(
        sub=user.id,
        role=user.role,
        tenant_id=user.client_id,
        settings=settings,
    )


def find_user_by_email(session: Session, email: str) -> User | None:
    return session.query(User).filter(User.email == email.strip().lower()).first()


def login(
    session: Session,
    email: str,
    password: str,
    settings: "Settings",
    request: Request | None = None,
    now: datetime | None = None,
) -> LoginResult:
    """
    Authenticate email/password and issue an access + refresh token pair.

    Raises UnauthenticatedError (unknown email or wrong password, indistinguishable),
    AccountDisabledError, or AccountLockedError. Disabled and locked accounts are refused
    before the password is checked and their counters are left untouched.
    """
    now = now or datetime.now(UTC)
    user = find_user_by_email(session, email)
    if user is None:
        verify_password(password, _dummy_password_hash(settings.BCRYPT_ROUNDS))
        logger.info("Login failed", extra={"reason": "invalid_credentials"})
        raise UnauthenticatedError(INVALID_CREDENTIALS, reason="invalid_credentials")

    state = LockState.of(user)
    verdict = check_gate(state, now)
    match verdict:
        case GateVerdict.DISABLED:
            logger.info("Login refused", extra={"user_id": user.id, "reason": "disabled"})
            raise AccountDisabledError("Account disabled.")
        case GateVerdict.LOCKED:
            logger.info("Login refused", extra={"user_id": user.id, "reason": "locked"})
            raise AccountLockedError(state.lock_until, "Account locked.")
        case GateVerdict.OPEN:
            pass

    if not verify_password(password, user.password_hash):
        policy = LockoutPolicy.from_settings(settings)
        new_state = record_failure(state, now, policy)
        new_state.apply_to(user)
        audit.record_event(
            session,
            audit.LOGIN_FAILED,
            user_id=user.id,
            entity_type="User",
            entity_id=user.id,
            request=request,
            details={"failed_login_count": new_state.failed_login_count},
        )
        if new_state.status == AccountStatus.LOCKED:
            audit.record_event(
                session,
                audit.ACCOUNT_LOCKED,
                user_id=user.id,
                entity_type="User",
                entity_id=user.id,
                request=request,
                details={"lock_until": new_state.lock_until.isoformat()},
            )
        session.commit()

        if new_state.status == AccountStatus.LOCKED:
            logger.warning(
                "Account locked after failed logins",
                extra={
                    "user_id": user.id,
                    "failed_login_count": new_state.failed_login_count,
                    "lock_until": new_state.lock_until.isoformat(),
                },
            )
            raise AccountLockedError(new_state.lock_until, "Account locked.")
        logger.info(
            "Login failed",
            extra={
                "user_id": user.id,
                "reason": "invalid_credentials",
                "failed_login_count": new_state.failed_login_count,
            },
        )
        raise UnauthenticatedError(INVALID_CREDENTIALS, reason="invalid_credentials")

    record_success(state).apply_to(user)
    user.last_login_at = now
    user.last_login_ip = audit.client_ip(request)

    access_token = issue_access_token(user, settings)
    refresh_token, refresh_expires = create_refresh_token(user.id, settings=settings)
    refresh_registry.register(session, user.id, refresh_token, refresh_expires, now=now)
    audit.record_event(
        session,
        audit.LOGIN,
        user_id=user.id,
        entity_type="User",
        entity_id=user.id,
        request=request,
    )
    session.commit()
    logger.info("Login succeeded", extra={"user_id": user.id, "role": user.role})
    return LoginResult(user=user, access_token=access_token, refresh_token=refresh_token)


def _subject_id(payload: dict) -> int:
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError) as e:
        raise TokenError() from e


def refresh(
    session: Session,
    raw_token: str,
    settings: "Settings",
    request: Request | None = None,
    now: datetime | None = None,
) -> RefreshResult:
    """
    Exchange a refresh token for a new access token.

    The token must verify under the refresh secret AND match a live registry row, and
    the account must be able to log in right now. Every failure is the same 401.
    """
    now = now or datetime.now(UTC)
    try:
        user_id = _subject_id(decode_refresh_token(raw_token, settings=settings))
    except TokenError:
        logger.info("Refresh refused", extra={"reason": "invalid_token"})
        raise UnauthenticatedError(INVALID_REFRESH) from None

    record = refresh_registry.find_active(session, user_id, raw_token, settings, now=now)
    if record is None:
        logger.info("Refresh refused", extra={"user_id": user_id, "reason": "not_registered"})
        raise UnauthenticatedError(INVALID_REFRESH)

    user = session.get(User, user_id)
    if user is None or check_gate(LockState.of(user), now) != GateVerdict.OPEN:
        logger.info("Refresh refused", extra={"user_id": user_id, "reason": "account_state"})
        raise UnauthenticatedError(INVALID_REFRESH)

    access_token = issue_access_token(user, settings)
    new_refresh_token: str | None = None
    if settings.REFRESH_TOKEN_ROTATION:
        refresh_registry.revoke(record, now)
        new_refresh_token, expires_at = create_refresh_token(user.id, settings=settings)
        refresh_registry.register(session, user.id, new_refresh_token, expires_at, now=now)
    audit.record_event(
        session,
        audit.TOKEN_REFRESH,
        user_id=user.id,
        entity_type="User",
        entity_id=user.id,
        request=request,
        details={"rotated": new_refresh_token is not None},
    )
    session.commit()
    return RefreshResult(access_token=access_token, refresh_token=new_refresh_token)


def logout(
    session: Session,
    raw_token: str | None,
    settings: "Settings",
    request: Request | None = None,
    now: datetime | None = None,
) -> bool:
    """
    Revoke the registry row of the presented refresh token, if any.

    Returns True when a row was revoked. Callers respond identically either way.
    """
    if not raw_token:
        return False
    now = now or datetime.now(UTC)
    try:
        user_id = _subject_id(decode_refresh_token(raw_token, settings=settings))
    except TokenError:
        return False

    record = refresh_registry.find_active(session, user_id, raw_token, settings, now=now)
    if record is None:
        return False
    refresh_registry.revoke(record, now)
    audit.record_event(
        session,
        audit.LOGOUT,
        user_id=user_id,
        entity_type="User",
        entity_id=user_id,
        request=request,
    )
    session.commit()
    logger.info("Logout revoked refresh token", extra={"user_id": user_id})
    return True
