"""FastAPI route definitions for the suid REST API.

API Endpoint Overview
=====================
::
    GET  /health
        └─ HealthResponse (200)

    GET  /api/suid
        └─ SuidResponse (200) or 503 + Retry-After

    GET  /api/suid/:text?format=base36|base32
        └─ SuidResponse (200) or 422

Request Flow Diagram
====================
::
    ┌─────────────┐
    │  GET        │
    │  /api/suid  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ ctx.next()  │── PoolExhausted ──► 503, Retry-After: 1
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ SuidResponse│
    └─────────────┘

Key Behaviours
===============
- Allocation never waits on the block allocation service.
- An exhausted pool is reported as backpressure (503), never as a server fault.
- Malformed identifiers are rejected with 422, never coerced.
- Handlers are ``async def`` and call the synchronous pool store directly, so a
  slow Redis blocks the event loop for up to SUID_STORE_TIMEOUT_SECONDS per call.
  This is deliberate: the allocator is only ever touched from the loop thread.
"""

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import get_context
from app.schemas import HealthResponse, SuidResponse
from suid.context import SuidContext
from suid.enums import HealthStatus, SuidFormat
from suid.exceptions import InvalidEncoding, PoolExhausted
from suid.models import Suid

__all__ = ["router"]

router = APIRouter()

EXHAUSTED_RETRY_AFTER_SECONDS = 1


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(ctx: SuidContext = Depends(get_context)) -> HealthResponse:
    pool_size = ctx.store.size()
    server_configured = bool(ctx.settings.SUID_SERVER_URL)
    status = HealthStatus.HEALTHY if server_configured and pool_size > 0 else HealthStatus.UNHEALTHY
    ctx.logger.debug(f"Health check completed: {status.value}")
    return HealthResponse(
        status=status,
        server_configured=server_configured,
        persistent=ctx.store.persistent,
        pool_size=pool_size,
        ready=ctx.ready,
    )


@router.get("/api/suid", response_model=SuidResponse, tags=["suid"])
async def allocate_suid(ctx: SuidContext = Depends(get_context)) -> SuidResponse:
    try:
        suid = ctx.next()
    except PoolExhausted as exc:
        ctx.logger.warning(f"Suid allocation rejected: {exc}")
        raise HTTPException(
            status_code=503,
            detail=str(exc),
            headers={"Retry-After": str(EXHAUSTED_RETRY_AFTER_SECONDS)},
        ) from exc
    return SuidResponse.from_suid(suid)


@router.get("/api/suid/{text}", response_model=SuidResponse, tags=["suid"])
async def decode_suid(
    text: str,
    format: SuidFormat = SuidFormat.BASE36,
    ctx: SuidContext = Depends(get_context),
) -> SuidResponse:
    try:
        suid = Suid.parse(text, format)
    except InvalidEncoding as exc:
        ctx.logger.info(f"Rejected suid text: {exc}")
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return SuidResponse.from_suid(suid)
