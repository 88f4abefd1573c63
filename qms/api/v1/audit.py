"""Audit log endpoint (admin only)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from qms.api.v1.deps import clamp_page, require_role, total_pages
from qms.core.database import get_db
from qms.core.roles import Role
from qms.models import AuditLog
from qms.schemas.audit import AuditLogOut, AuditPage
from qms.schemas.auth import AccessClaims

router = APIRouter()


@router.get("", response_model=AuditPage)
def list_audit_logs(
    _admin: Annotated[AccessClaims, Depends(require_role(Role.ADMIN))],
    db: Annotated[Session, Depends(get_db)],
    page: int = 1,
    page_size: Annotated[int, Query(alias="pageSize")] = 30,
) -> AuditPage:
    """Audit entries, newest first. pageSize is clamped to 1..100."""
    page, page_size = clamp_page(page, page_size)
    total = db.query(AuditLog).count()
    items = (
        db.query(AuditLog)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return AuditPage(
        page=page,
        page_size=page_size,
        total=total,
        total_pages=total_pages(total, page_size),
        items=[AuditLogOut.model_validate(i) for i in items],
    )
