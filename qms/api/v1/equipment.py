"""Equipment endpoints, scoped to the caller's tenant for CLIENT accounts."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from qms.api.v1.deps import (
    CurrentClaims,
    clamp_page,
    ensure_tenant_access,
    require_role,
    scope_query,
    tenant_scope,
    total_pages,
)
from qms.core.database import get_db
from qms.core.errors import ConflictError, InputValidationError, NotFoundError
from qms.core.roles import Role
from qms.models import Client, Equipment
from qms.schemas.auth import AccessClaims
from qms.schemas.equipment import EquipmentCreate, EquipmentOut, EquipmentPage
from qms.services import audit
from qms.services.codes import make_equipment_code

logger = logging.getLogger(__name__)

router = APIRouter()

# Codes are random; a collision with the unique index is retried with a fresh code.
CODE_ATTEMPTS = 5


@router.get("", response_model=EquipmentPage)
def list_equipment(
    claims: CurrentClaims,
    db: Annotated[Session, Depends(get_db)],
    page: int = 1,
    page_size: Annotated[int, Query(alias="pageSize")] = 20,
    search: str = "",
    equipment_type: Annotated[str, Query(alias="type")] = "",
    client_id: Annotated[int | None, Query(alias="clientId")] = None,
) -> EquipmentPage:
    """
    Paginated equipment list. search matches serial number or equipment code.

    CLIENT accounts are always restricted to their tenant; clientId is ignored for them.
    """
    page, page_size = clamp_page(page, page_size)
    query = scope_query(db.query(Equipment), Equipment.client_id, claims)
    if client_id is not None and tenant_scope(claims) is None:
        query = query.filter(Equipment.client_id == client_id)
    if equipment_type.strip():
        query = query.filter(Equipment.type == equipment_type.strip())
    if search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Equipment.serial_number.ilike(pattern),
                Equipment.equipment_code.ilike(pattern),
            )
        )

    total = query.count()
    items = (
        query.order_by(Equipment.created_at.desc(), Equipment.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return EquipmentPage(
        page=page,
        page_size=page_size,
        total=total,
        total_pages=total_pages(total, page_size),
        items=[EquipmentOut.model_validate(e) for e in items],
    )


@router.get("/{equipment_id}", response_model=EquipmentOut)
def get_equipment(
    equipment_id: int,
    claims: CurrentClaims,
    db: Annotated[Session, Depends(get_db)],
) -> EquipmentOut:
    """Fetch one item; 403 when it belongs to another tenant than the CLIENT caller's."""
    item = db.get(Equipment, equipment_id)
    # Tenant-scoped callers get 403 for anything outside their tenant, missing rows included.
    ensure_tenant_access(claims, item.client_id if item is not None else None)
    if item is None:
        raise NotFoundError("Equipment not found")
    return EquipmentOut.model_validate(item)


@router.post("", response_model=EquipmentOut, status_code=status.HTTP_201_CREATED)
def create_equipment(
    body: EquipmentCreate,
    request: Request,
    claims: Annotated[
        AccessClaims, Depends(require_role(Role.ADMIN, Role.MANAGER, Role.INSPECTOR))
    ],
    db: Annotated[Session, Depends(get_db)],
) -> EquipmentOut:
    """Register equipment under a client. 409 if no unique equipment code could be allocated."""
    if db.get(Client, body.client_id) is None:
        raise InputValidationError("clientId does not reference a client")
    for attempt in range(1, CODE_ATTEMPTS + 1):
        item = Equipment(
            client_id=body.client_id,
            equipment_code=make_equipment_code(),
            type=body.type.strip(),
            serial_number=body.serial_number.strip(),
            manufacturer=body.manufacturer,
        )
        db.add(item)
        try:
            db.flush()
            break
        except IntegrityError:
            db.rollback()
            logger.info("Equipment code collision", extra={"attempt": attempt})
    else:
        raise ConflictError("Could not allocate a unique equipment code")
    audit.record_event(
        db,
        audit.EQUIPMENT_CREATE,
        user_id=claims.subject,
        entity_type="Equipment",
        entity_id=item.id,
        request=request,
    )
    db.commit()
    db.refresh(item)
    return EquipmentOut.model_validate(item)
