"""Authorization guard: bearer token authentication, role checks and tenant scoping."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Annotated, Any, assert_never

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError
from sqlalchemy.orm import Query

from qms.core.config import get_settings
from qms.core.errors import ForbiddenError, UnauthenticatedError
from qms.core.roles import Role
from qms.core.security import TokenError, decode_access_token
from qms.schemas.auth import AccessClaims

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

# One message for every verification failure; callers never learn which check failed.
INVALID_TOKEN = "Invalid or expired token"


def claims_from_token(token: str) -> AccessClaims:
    """Verify an access token and build its claims. Raises UnauthenticatedError."""
    try:
        payload = decode_access_token(token, settings=get_settings())
        return AccessClaims(
            subject=int(payload["sub"]),
            role=payload.get("role"),
            tenant_id=payload.get("tenant_id"),
            issued_at=datetime.fromtimestamp(payload["iat"], UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        )
    except (TokenError, ValidationError, KeyError, TypeError, ValueError):
        raise UnauthenticatedError(INVALID_TOKEN) from None


def get_current_claims(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> AccessClaims:
    """Dependency: require a valid Bearer access token. Raises 401 if missing or invalid."""
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError("Not authenticated")
    return claims_from_token(credentials.credentials)


CurrentClaims = Annotated[AccessClaims, Depends(get_current_claims)]


def authorize_role(claims: AccessClaims | None, allowed: frozenset[Role]) -> AccessClaims:
    """Return claims if their role is allowed; 401 without claims, 403 for other roles."""
    if claims is None:
        raise UnauthenticatedError("Not authenticated")
    if claims.role not in allowed:
        logger.info(
            "Role not permitted",
            extra={"user_id": claims.subject, "role": claims.role.value},
        )
        raise ForbiddenError()
    return claims


def require_role(*roles: Role) -> Callable[..., AccessClaims]:
    """Build a dependency that admits only the given roles."""
    allowed = frozenset(roles)

    def dependency(claims: CurrentClaims) -> AccessClaims:
        return authorize_role(claims, allowed)

    return dependency


def tenant_scope(claims: AccessClaims) -> int | None:
    """
    Tenant id that must restrict every read for these claims; None means unrestricted.

    A CLIENT token without a tenant id cannot be scoped and is refused outright.
    """
    match claims.role:
        case Role.ADMIN | Role.MANAGER | Role.INSPECTOR:
            return None
        case Role.CLIENT:
            if claims.tenant_id is None:
                raise ForbiddenError()
            return claims.tenant_id
        case _:
            assert_never(claims.role)


def scope_query(query: Query, tenant_column: Any, claims: AccessClaims) -> Query:
    """Filter query to the caller's tenant when the caller is tenant-scoped."""
    tenant_id = tenant_scope(claims)
    if tenant_id is None:
        return query
    return query.filter(tenant_column == tenant_id)


def ensure_tenant_access(claims: AccessClaims, resource_tenant_id: int | None) -> None:
    """Raise 403 when a tenant-scoped caller touches another tenant's resource."""
    tenant_id = tenant_scope(claims)
    if tenant_id is not None and tenant_id != resource_tenant_id:
        logger.info(
            "Cross-tenant access refused",
            extra={"user_id": claims.subject, "tenant_id": tenant_id},
        )
        raise ForbiddenError()


MAX_PAGE_SIZE = 100


def clamp_page(page: int, page_size: int) -> tuple[int, int]:
    """Clamp paging input to page >= 1 and 1 <= page_size <= MAX_PAGE_SIZE."""
    return max(1, page), min(MAX_PAGE_SIZE, max(1, page_size))


def total_pages(total: int, page_size: int) -> int:
    return max(1, -(-total // page_size))
