"""Pydantic schemas for health check responses."""

from typing import Literal

from pydantic import Field

from qms.schemas.base import ApiModel


class HealthResponse(ApiModel):
    """Response body for the health check endpoint."""

    status: Literal["ok", "degraded"] = Field(default="ok", description="Service status")
    environment: str = Field(description="Current app environment (e.g. dev, prod)")
    database: Literal["connected", "disconnected"] = Field(
        description="Database connectivity at request time",
    )
