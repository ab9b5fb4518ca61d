"""Pydantic schemas for request/response validation in the suid service.

Schema Hierarchy
=================
::
    SuidResponse (Output)
    ├─ value: int
    └─ text: str (canonical base-36)

    HealthResponse (Output)
    ├─ status: HealthStatus
    ├─ server_configured: bool
    ├─ persistent: bool
    ├─ pool_size: int
    └─ ready: bool

Classes:
    SuidResponse:  Output schema for allocated or decoded Suids.
    HealthResponse:  Output schema for health checks.
"""

from pydantic import BaseModel, Field

from suid.enums import HealthStatus
from suid.models import Suid

__all__ = ["SuidResponse", "HealthResponse"]


class SuidResponse(BaseModel):
    value: int = Field(..., description="Numeric identifier, e.g. 1903154", ge=0)
    text: str = Field(..., description="Canonical base-36 rendering, e.g. '14she'")

    @classmethod
    def from_suid(cls, suid: Suid) -> "SuidResponse":
        return cls(value=int(suid), text=str(suid))


class HealthResponse(BaseModel):
    status: HealthStatus
    server_configured: bool
    persistent: bool
    pool_size: int
    ready: bool
