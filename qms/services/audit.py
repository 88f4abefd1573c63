"""Audit trail: append events to audit_logs inside the caller's transaction."""

from typing import Any

from fastapi import Request
from sqlalchemy.orm import Session

from qms.models import AuditLog

LOGIN = "LOGIN"
LOGIN_FAILED = "LOGIN_FAILED"
ACCOUNT_LOCKED = "ACCOUNT_LOCKED"
LOGOUT = "LOGOUT"
TOKEN_REFRESH = "TOKEN_REFRESH"
USER_CREATE = "USER_CREATE"
USER_STATUS_UPDATE = "USER_STATUS_UPDATE"
USER_PASSWORD_RESET = "USER_PASSWORD_RESET"
CLIENT_CREATE = "CLIENT_CREATE"
EQUIPMENT_CREATE = "EQUIPMENT_CREATE"

USER_AGENT_MAX_LEN = 512


def client_ip(request: Request | None) -> str | None:
    if request is None or request.client is None:
        return None
    return request.client.host


def record_event(
    session: Session,
    action: str,
    *,
    user_id: int | None = None,
    entity_type: str | None = None,
    entity_id: int | str | None = None,
    request: Request | None = None,
    details: dict[str, Any] | None = None,
) -> AuditLog:
    """Add an audit row; it is persisted when the caller commits."""
    user_agent = request.headers.get("user-agent") if request is not None else None
    entry = AuditLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        ip=client_ip(request),
        user_agent=user_agent[:USER_AGENT_MAX_LEN] if user_agent else None,
        details=details,
    )
    session.add(entry)
    return entry
