"""Client (tenant) endpoints. CLIENT accounts only ever see their own client."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from qms.api.v1.deps import CurrentClaims, ensure_tenant_access, require_role, scope_query
from qms.core.database import get_db
from qms.core.errors import NotFoundError
from qms.core.roles import Role
from qms.models import Client
from qms.schemas.auth import AccessClaims
from qms.schemas.clients import ClientCreate, ClientOut, ClientsListResponse
from qms.services import audit

router = APIRouter()


@router.get("", response_model=ClientsListResponse)
def list_clients(
    claims: CurrentClaims,
    db: Annotated[Session, Depends(get_db)],
) -> ClientsListResponse:
    query = scope_query(db.query(Client), Client.id, claims)
    clients = query.order_by(Client.created_at.desc(), Client.id.desc()).all()
    return ClientsListResponse(items=[ClientOut.model_validate(c) for c in clients])


@router.get("/{client_id}", response_model=ClientOut)
def get_client(
    client_id: int,
    claims: CurrentClaims,
    db: Annotated[Session, Depends(get_db)],
) -> ClientOut:
    """Fetch one client; 403 when a CLIENT account asks for another tenant."""
    ensure_tenant_access(claims, client_id)
    client = db.get(Client, client_id)
    if client is None:
        raise NotFoundError("Client not found")
    return ClientOut.model_validate(client)


@router.post("", response_model=ClientOut, status_code=status.HTTP_201_CREATED)
def create_client(
    body: ClientCreate,
    request: Request,
    claims: Annotated[AccessClaims, Depends(require_role(Role.ADMIN, Role.MANAGER))],
    db: Annotated[Session, Depends(get_db)],
) -> ClientOut:
    client = Client(
        name=body.name.strip(),
        category=body.category,
        status=body.status,
        notes=body.notes,
    )
    db.add(client)
    db.flush()
    audit.record_event(
        db,
        audit.CLIENT_CREATE,
        user_id=claims.subject,
        entity_type="Client",
        entity_id=client.id,
        request=request,
    )
    db.commit()
    db.refresh(client)
    return ClientOut.model_validate(client)
