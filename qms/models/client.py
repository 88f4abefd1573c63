"""ORM model for clients (tenants)."""

from sqlalchemy import Column, DateTime, Integer, String, Text, func
from sqlalchemy.orm import relationship

from qms.models.base import Base


class Client(Base):
    """
    A customer of the inspection company. Each client is a tenant: CLIENT accounts
    and equipment rows point at it through client_id.

    category: MINE, INDUSTRIAL or CONSTRUCTION
    status: ACTIVE, INACTIVE or SUSPENDED
    """

    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    category = Column(String(32), nullable=False)
    status = Column(String(32), nullable=False, default="ACTIVE")
    notes = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    users = relationship("User", back_populates="client")
    equipment = relationship("Equipment", back_populates="client")
