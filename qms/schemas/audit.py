"""Schemas for the audit log listing."""

from datetime import datetime
from typing import Any

from qms.schemas.base import ApiModel


class AuditLogOut(ApiModel):
    id: int
    user_id: int | None = None
    action: str
    entity_type: str | None = None
    entity_id: str | None = None
    ip: str | None = None
    user_agent: str | None = None
    details: dict[str, Any] | None = None
    created_at: datetime | None = None


class AuditPage(ApiModel):
    page: int
    page_size: int
    total: int
    total_pages: int
    items: list[AuditLogOut]
