"""ORM model for inspected equipment."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from qms.models.base import Base


class Equipment(Base):
    __tablename__ = "equipment"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(
        Integer, ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    equipment_code = Column(String(32), nullable=False, unique=True, index=True)
    type = Column(String(128), nullable=False)
    serial_number = Column(String(255), nullable=False, index=True)
    manufacturer = Column(String(255), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    client = relationship("Client", back_populates="equipment")
