"""ORM model for application accounts (auth, lockout and RBAC)."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from qms.core.roles import AccountStatus, Role
from qms.models.base import Base


class User(Base):
    """
    Account for JWT authentication, lockout tracking and role-based access control.

    role: ADMIN, MANAGER, INSPECTOR or CLIENT. CLIENT accounts always carry client_id
    (their tenant); for other roles client_id is null and ignored for scoping.
    email is stored lower-cased so lookups are case-insensitive.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role <> 'CLIENT' OR client_id IS NOT NULL", name="ck_users_client_has_tenant"
        ),
        CheckConstraint("failed_login_count >= 0", name="ck_users_failed_login_count"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=Role.INSPECTOR.value)
    client_id = Column(
        Integer, ForeignKey("clients.id", ondelete="RESTRICT"), nullable=True, index=True
    )

    status = Column(String(16), nullable=False, default=AccountStatus.ACTIVE.value)
    failed_login_count = Column(Integer, nullable=False, default=0)
    lock_until = Column(DateTime(timezone=True), nullable=True)

    last_login_at = Column(DateTime(timezone=True), nullable=True)
    last_login_ip = Column(String(64), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    client = relationship("Client", back_populates="users")
    refresh_tokens = relationship(
        "RefreshToken", back_populates="user", cascade="all, delete-orphan"
    )
