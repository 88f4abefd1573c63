"""Refresh token hygiene: delete registry rows that expired or were revoked long ago."""

import logging
from datetime import datetime, timezone, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import or_
from sqlalchemy.orm import Session

from qms.models import RefreshToken

if TYPE_CHECKING:
    from qms.core.config import Settings

logger = logging.getLogger(__name__)


def run_retention(session: Session, settings: "Settings") -> int:
    """
    Delete refresh tokens that expired, or were revoked, more than RETENTION_HOURS ago.

    Dead rows are already ignored by lookups, so this only reclaims storage.
    Returns the number of rows deleted. Idempotent: safe to run repeatedly.
    """
    if not settings.RETENTION_ENABLED:
        logger.info("Retention is disabled (RETENTION_ENABLED=false); skipping.")
        return 0

    cutoff = datetime.now(timezone.utc) - timedelta(hours=settings.RETENTION_HOURS)
    deleted_count = (
        session.query(RefreshToken)
        .filter(
            or_(
                RefreshToken.expires_at < cutoff,
                RefreshToken.revoked_at < cutoff,
            )
        )
        .delete(synchronize_session=False)
    )
    session.commit()

    if deleted_count > 0:
        logger.info(
            "Retention run: cutoff=%s, refresh_tokens_deleted=%s",
            cutoff.isoformat(),
            deleted_count,
        )
    return deleted_count
