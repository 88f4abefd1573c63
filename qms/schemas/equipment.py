"""Schemas for equipment."""

from datetime import datetime

from pydantic import Field

from qms.schemas.base import ApiModel


class EquipmentCreate(ApiModel):
    client_id: int
    type: str = Field(..., min_length=2, max_length=128)
    serial_number: str = Field(..., min_length=1, max_length=255)
    manufacturer: str | None = Field(default=None, max_length=255)


class EquipmentOut(ApiModel):
    id: int
    client_id: int
    equipment_code: str
    type: str
    serial_number: str
    manufacturer: str | None = None
    created_at: datetime | None = None


class EquipmentPage(ApiModel):
    page: int
    page_size: int
    total: int
    total_pages: int
    items: list[EquipmentOut]
