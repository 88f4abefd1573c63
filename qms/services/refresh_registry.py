"""Refresh token registry: persist hashed refresh tokens, match presented tokens, revoke.

Hashes are bcrypt (fresh salt per call), so a presented token cannot be looked up by
equality. Matching fetches the account's live rows, newest first, capped at
REFRESH_TOKEN_SCAN_LIMIT, and runs one bcrypt comparison per row.
"""

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from qms.core.security import hash_refresh_token, verify_refresh_token_hash
from qms.models import RefreshToken

if TYPE_CHECKING:
    from qms.core.config import Settings

logger = logging.getLogger(__name__)


def register(
    session: Session,
    user_id: int,
    raw_token: str,
    expires_at: datetime,
    now: datetime | None = None,
) -> RefreshToken:
    """Add a registry row for a newly issued token. The caller commits."""
    record = RefreshToken(
        user_id=user_id,
        token_hash=hash_refresh_token(raw_token),
        created_at=now or datetime.now(UTC),
        expires_at=expires_at,
        revoked_at=None,
    )
    session.add(record)
    session.flush()
    return record


def live_records(
    session: Session, user_id: int, now: datetime, limit: int
) -> list[RefreshToken]:
    """Non-revoked, unexpired rows for user_id, newest first, at most limit rows."""
    return (
        session.query(RefreshToken)
        .filter(
            RefreshToken.user_id == user_id,
            RefreshToken.revoked_at.is_(None),
            RefreshToken.expires_at > now,
        )
        .order_by(RefreshToken.created_at.desc(), RefreshToken.id.desc())
        .limit(limit)
        .all()
    )


def find_active(
    session: Session,
    user_id: int,
    raw_token: str,
    settings: "Settings",
    now: datetime | None = None,
) -> RefreshToken | None:
    """Return the live registry row whose hash matches raw_token, or None."""
    now = now or datetime.now(UTC)
    candidates = live_records(session, user_id, now, settings.REFRESH_TOKEN_SCAN_LIMIT)
    for record in candidates:
        if verify_refresh_token_hash(raw_token, record.token_hash):
            return record
    logger.debug(
        "No registry match",
        extra={"user_id": user_id, "candidates_scanned": len(candidates)},
    )
    return None


def revoke(record: RefreshToken, now: datetime | None = None) -> None:
    if record.revoked_at is None:
        record.revoked_at = now or datetime.now(UTC)


def revoke_all_for_user(session: Session, user_id: int, now: datetime | None = None) -> int:
    """Revoke every live token of user_id (password reset, disable). Returns rows touched."""
    return (
        session.query(RefreshToken)
        .filter(RefreshToken.user_id == user_id, RefreshToken.revoked_at.is_(None))
        .update({RefreshToken.revoked_at: now or datetime.now(UTC)}, synchronize_session=False)
    )
