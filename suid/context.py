"""Allocator context: one explicit owner for pool, allocator and replenishment.

Architecture Overview
=====================
::
    ┌──────────────────────────────────────────────────────────┐
    │                       SuidContext                        │
    │  ┌──────────────┐  ┌──────────────┐  ┌────────────────┐  │
    │  │ LocalAlloc.  │─►│ Replenishment│─►│ Backoff        │  │
    │  │ next()       │  │ Client       │◄─│ Controller     │  │
    │  └──────┬───────┘  └──────┬───────┘  └────────────────┘  │
    │         ▼                 ▼                              │
    │  ┌──────────────────────────────┐                        │
    │  │ BlockPoolStore               │                        │
    │  └──────────────┬───────────────┘                        │
    └─────────────────┼────────────────────────────────────────┘
                      ▼
               ┌─────────────┐        ┌──────────────────┐
               │    Redis    │        │ Block allocation │
               │ (substrate) │        │ service (HTTP)   │
               └─────────────┘        └──────────────────┘

How to Use
===========
**Step 1 — Create and start**::
    ctx = SuidContext()
    await ctx.start()

**Step 2 — Wait for supply, then allocate**::
    await ctx.wait_ready(timeout=5)
    suid = ctx.next()
    print(str(suid), int(suid))

**Step 3 — Shut down**::
    await ctx.aclose()

Key Behaviours
===============
- Several independent contexts may coexist in one process.
- Settings are copied per context; ``configure`` updates them in place.
- Readiness is a one-shot future: callbacks fire once, asynchronously.
- All work happens on one event loop; there is no internal locking.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Optional

import httpx
import redis

from suid.allocator import LocalAllocator
from suid.backoff import BackoffController
from suid.config import Settings, get_settings
from suid.models import Suid
from suid.pool import BlockPoolStore
from suid.replenish import ReplenishmentClient

__all__ = ["SuidContext", "get_suid_context"]

_CONFIGURABLE = {
    "server_url": "SUID_SERVER_URL",
    "pool_min": "SUID_POOL_MIN",
    "pool_max": "SUID_POOL_MAX",
}


def _setup_logger(level: str) -> logging.Logger:
    """Setup logger once."""
    logger = logging.getLogger("suid")
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(level)
    return logger


class SuidContext:
    """Owns everything one allocator needs.

    Args:
        settings: Base settings; a private copy is taken
        redis_client: Synchronous Redis client; built from REDIS_URL when omitted
        transport: httpx transport for the block allocation service
        clock: Monotonic clock for the backoff controller
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        redis_client: redis.Redis | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = (settings or get_settings()).model_copy()
        self.logger = _setup_logger(self.settings.LOG_LEVEL)

        self._owns_redis = redis_client is None and bool(self.settings.REDIS_URL)
        if self._owns_redis:
            redis_client = redis.Redis.from_url(
                self.settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_timeout=self.settings.SUID_STORE_TIMEOUT_SECONDS,
                socket_connect_timeout=self.settings.SUID_STORE_TIMEOUT_SECONDS,
            )
        self._redis = redis_client

        self.store = BlockPoolStore(
            redis_client,
            key=self.settings.SUID_POOL_KEY,
            legacy_key=self.settings.SUID_LEGACY_POOL_KEY,
            logger=self.logger,
        )
        self.allocator = LocalAllocator(self.store, self.settings, on_low=self._on_low, logger=self.logger)
        self.backoff = BackoffController(self.settings, self.allocator, self.store, clock=clock, logger=self.logger)
        self.replenisher = ReplenishmentClient(
            self.settings,
            self.store,
            self.backoff,
            transport=transport,
            on_success=self._check_ready,
            logger=self.logger,
        )
        self._ready_future: Optional[asyncio.Future] = None

    # ========================================================================
    # PUBLIC API METHODS
    # ========================================================================

    def next(self) -> Suid:
        """Allocate one identifier; raises ``PoolExhausted`` when out of supply."""
        return self.allocator.next()

    @property
    def ready(self) -> bool:
        return bool(self.settings.SUID_SERVER_URL) and self.store.size() > 0

    async def start(self) -> None:
        """Run the startup supply check and resolve readiness if already satisfied."""
        self.logger.info(
            f"Starting suid context (server={self.settings.SUID_SERVER_URL}, "
            f"min={self.settings.SUID_POOL_MIN}, max={self.settings.SUID_POOL_MAX}, "
            f"persistent={self.store.persistent})"
        )
        if not self.settings.SUID_SERVER_URL:
            self.logger.error("SUID_SERVER_URL is not set. Unable to fetch suids from the server.")
        self.allocator.check_supply()
        self._check_ready()

    def configure(self, **changes) -> None:
        """Update server_url, pool_min or pool_max in place and re-check readiness.

        Raises:
            ValueError: Unknown option or a non-positive pool size
        """
        for name, value in changes.items():
            field = _CONFIGURABLE.get(name)
            if field is None:
                raise ValueError(f"Unknown suid option {name!r}")
            if name != "server_url" and (not isinstance(value, int) or value < 1):
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
            setattr(self.settings, field, value)

        self.logger.info(f"Suid configuration updated: {changes}")
        self.allocator.check_supply()
        self._check_ready()

    async def wait_ready(self, timeout: float | None = None) -> None:
        """Block until a server is configured and the pool holds a block."""
        await asyncio.wait_for(asyncio.shield(self._readiness()), timeout)

    def on_ready(self, callback: Callable[[], None]) -> None:
        """Call ``callback`` once, asynchronously, after readiness is achieved."""
        def fire(future: asyncio.Future) -> None:
            if not future.cancelled():
                callback()

        self._readiness().add_done_callback(fire)

    async def aclose(self) -> None:
        await self.replenisher.aclose()
        if self._ready_future is not None and not self._ready_future.done():
            self._ready_future.cancel()
        if self._owns_redis:
            self._redis.close()
        self.logger.info("Suid context closed")

    # ========================================================================
    # PRIVATE HELPER METHODS
    # ========================================================================

    def _on_low(self) -> None:
        self.replenisher.fetch()

    def _readiness(self) -> asyncio.Future:
        if self._ready_future is None:
            self._ready_future = asyncio.get_running_loop().create_future()
            self._check_ready()
        return self._ready_future

    def _check_ready(self) -> None:
        if self._ready_future is None or self._ready_future.done():
            return
        if self.ready:
            self._ready_future.set_result(True)


# Global context instance
_suid_context: SuidContext | None = None


def get_suid_context() -> SuidContext:
    """Get the process-wide suid context, creating it on first use."""
    global _suid_context
    if _suid_context is None:
        _suid_context = SuidContext()
    return _suid_context
