"""Account lockout: pure transitions over an account's lock state.

Nothing here touches the database. The login service reads the row into a LockState,
applies one transition, and writes the result back in the same commit.
"""

from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import TYPE_CHECKING

from qms.core.roles import AccountStatus

if TYPE_CHECKING:
    from qms.core.config import Settings
    from qms.models import User


class GateVerdict(StrEnum):
    """Whether a login attempt may proceed to password verification."""

    OPEN = "open"
    LOCKED = "locked"
    DISABLED = "disabled"


@dataclass(frozen=True)
class LockoutPolicy:
    threshold: int
    lock_duration: timedelta

    @classmethod
    def from_settings(cls, settings: "Settings") -> "LockoutPolicy":
        return cls(
            threshold=settings.LOCKOUT_THRESHOLD,
            lock_duration=timedelta(minutes=settings.LOCKOUT_MINUTES),
        )


@dataclass(frozen=True)
class LockState:
    status: AccountStatus
    failed_login_count: int = 0
    lock_until: datetime | None = None

    @classmethod
    def of(cls, user: "User") -> "LockState":
        return cls(
            status=AccountStatus(user.status),
            failed_login_count=user.failed_login_count or 0,
            lock_until=as_utc(user.lock_until),
        )

    def apply_to(self, user: "User") -> None:
        user.status = self.status.value
        user.failed_login_count = self.failed_login_count
        user.lock_until = self.lock_until


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive timestamps (as some drivers return them) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _lock_pending(state: LockState, now: datetime) -> bool:
    return state.lock_until is not None and state.lock_until > now


def check_gate(state: LockState, now: datetime) -> GateVerdict:
    """
    Decide whether an attempt may verify a password at all.

    DISABLED always refuses. LOCKED with no lock_until is an administrative lock and
    refuses until an admin resets it; otherwise a lock refuses only while lock_until
    is in the future.
    """
    if state.status == AccountStatus.DISABLED:
        return GateVerdict.DISABLED
    if state.status == AccountStatus.LOCKED and state.lock_until is None:
        return GateVerdict.LOCKED
    if _lock_pending(state, now):
        return GateVerdict.LOCKED
    return GateVerdict.OPEN


def record_success(state: LockState) -> LockState:
    return LockState(status=AccountStatus.ACTIVE, failed_login_count=0, lock_until=None)


def record_failure(state: LockState, now: datetime, policy: LockoutPolicy) -> LockState:
    """
    Count one failed password check; lock once the count reaches the threshold.

    Only valid for attempts that passed check_gate. A lock that has lapsed is treated
    as a fresh ACTIVE account, so the first failure after it counts as 1.
    """
    if state.status == AccountStatus.LOCKED or (
        state.lock_until is not None and not _lock_pending(state, now)
    ):
        state = record_success(state)

    count = state.failed_login_count + 1
    if count >= policy.threshold:
        return LockState(
            status=AccountStatus.LOCKED,
            failed_login_count=count,
            lock_until=now + policy.lock_duration,
        )
    return replace(state, failed_login_count=count)


def admin_reset(state: LockState) -> LockState:
    """Administrative unlock: back to ACTIVE with counters cleared."""
    return record_success(state)
