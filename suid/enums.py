"""Shared enums for the suid client.

This module defines all status and state enums used across the codebase.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = ["HealthStatus", "SuidFormat", "AllocatorState", "CycleState"]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class SuidFormat(StrEnum):
    """Textual encodings a Suid may arrive in.

    BASE36 is the canonical encoding and the only one ever produced.
    BASE32 is the compressed legacy encoding, accepted for decoding only.
    """

    BASE36 = "base36"
    BASE32 = "base32"


class AllocatorState(StrEnum):
    """Local allocator states."""

    IDLE = "idle"
    ACTIVE = "active"


class CycleState(StrEnum):
    """Replenishment cycle states tracked by the backoff controller."""

    IDLE = "idle"
    REQUESTING = "requesting"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    GIVEN_UP = "given_up"
