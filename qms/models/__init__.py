"""SQLAlchemy ORM models."""

from qms.models.audit_log import AuditLog
from qms.models.base import Base
from qms.models.client import Client
from qms.models.equipment import Equipment
from qms.models.refresh_token import RefreshToken
from qms.models.user import User

__all__ = ["AuditLog", "Base", "Client", "Equipment", "RefreshToken", "User"]
