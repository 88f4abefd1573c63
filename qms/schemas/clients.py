"""Schemas for clients (tenants)."""

from datetime import datetime
from typing import Literal

from pydantic import Field

from qms.schemas.base import ApiModel

ClientCategory = Literal["MINE", "INDUSTRIAL", "CONSTRUCTION"]
ClientStatus = Literal["ACTIVE", "INACTIVE", "SUSPENDED"]


class ClientCreate(ApiModel):
    name: str = Field(..., min_length=2, max_length=255)
    category: ClientCategory
    status: ClientStatus = "ACTIVE"
    notes: str | None = Field(default=None, max_length=10_000)


class ClientOut(ApiModel):
    id: int
    name: str
    category: str
    status: str
    notes: str | None = None
    created_at: datetime | None = None


class ClientsListResponse(ApiModel):
    items: list[ClientOut]
