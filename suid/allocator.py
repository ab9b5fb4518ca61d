"""Local allocator: hands out Suids from the active block.

Flow Diagram — next()
=====================
::
    ┌─────────────┐
    │   next()    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Pool below  │── YES ──► on_low() (non-blocking)
    │ minimum?    │
    └──────┬──────┘
           ▼
    ┌─────────────┐        ┌─────────────┐
    │ Idle?       │── YES ►│ Pop oldest  │── none ──► PoolExhausted
    └──────┬──────┘        │ block       │
           │               └──────┬──────┘
           ▼                      ▼
    ┌──────────────────────────────────┐
    │ block + current_id * SHARD_SIZE  │
    │ current_id += 1                  │
    └──────┬───────────────────────────┘
           ▼
    ┌─────────────┐
    │ current_id  │── YES ──► retire block (Idle)
    │ == ID_SIZE? │
    └──────┬──────┘
           ▼
       Suid(value)

Key Behaviours
===============
- Never performs or awaits network I/O.
- A block yields exactly ID_SIZE identifiers, strictly increasing by SHARD_SIZE.
- Exhausted blocks are discarded, never persisted again.
- Allocator state is process-local: a restart resumes from the next pooled block.
"""

import logging
from collections.abc import Callable

from suid.config import Settings
from suid.enums import AllocatorState
from suid.exceptions import PoolExhausted
from suid.metrics import SUID_ALLOCATIONS_TOTAL, SUID_POOL_EXHAUSTED_TOTAL
from suid.models import Suid
from suid.pool import BlockPoolStore

__all__ = ["ID_SIZE", "SHARD_SIZE", "LocalAllocator"]

ID_SIZE = 32  # identifiers per block
SHARD_SIZE = 4  # stride, leaves room for sibling allocators


class LocalAllocator:
    """Sequential allocator over pooled blocks.

    Args:
        store: Pool of reserved blocks
        settings: Provides SUID_POOL_MIN
        on_low: Called when the pool needs replenishing; must not block
        logger: Logger for allocation events
    """

    def __init__(
        self,
        store: BlockPoolStore,
        settings: Settings,
        on_low: Callable[[], None] | None = None,
        logger: logging.Logger | None = None,
    ):
        self._store = store
        self._settings = settings
        self._on_low = on_low
        self._logger = logger or logging.getLogger("suid")
        self._block: int | None = None
        self._current_id = 0

    @property
    def state(self) -> AllocatorState:
        return AllocatorState.IDLE if self._block is None else AllocatorState.ACTIVE

    @property
    def active_block(self) -> int | None:
        return self._block

    @property
    def current_id(self) -> int:
        """Identifiers already issued from the active (or last retired) block."""
        return self._current_id

    def needs_replenish(self, pool_size: int) -> bool:
        minimum = self._settings.SUID_POOL_MIN
        return pool_size < minimum or (pool_size == minimum and self._block is None)

    def check_supply(self, pool_size: int | None = None) -> bool:
        """Signal ``on_low`` if the pool has dropped below the configured minimum."""
        if pool_size is None:
            pool_size = self._store.size()
        if not self.needs_replenish(pool_size):
            return False
        if self._on_low is not None:
            self._on_low()
        return True

    def next(self) -> Suid:
        """Return the next identifier.

        Raises:
            PoolExhausted: No active block and nothing pooled to promote.
        """
        pool = self._store.load()
        self.check_supply(len(pool))

        if self._block is None:
            if not pool:
                SUID_POOL_EXHAUSTED_TOTAL.inc()
                raise PoolExhausted()
            self._block = pool.pop(0)
            self._current_id = 0
            self._store.save(pool)
            self._logger.debug(f"Activated suid block {self._block}, {len(pool)} left in pool")

        value = self._block + self._current_id * SHARD_SIZE
        self._current_id += 1
        if self._current_id == ID_SIZE:
            self._logger.debug(f"Retired exhausted suid block {self._block}")
            self._block = None

        SUID_ALLOCATIONS_TOTAL.inc()
        return Suid(value)
