"""Retry and backoff policy for replenishment cycles.

Cycle state machine::

    IDLE ──► REQUESTING ──► SUCCEEDED
                 │  ▲
                 ▼  │
              RETRYING ──► GIVEN_UP

A cycle starts with ``SUID_RETRY_BUDGET`` retries. Transient failures
(5xx, transport errors) spend one retry and wait; anything else abandons
the cycle. The wait starts at ``SUID_RETRY_DEFAULT_MS`` or the server's
``Retry-After`` hint and is only ever shortened by urgency:

=============================  ===========================
Condition                      Cap
=============================  ===========================
pool is empty                  SUID_URGENT_EMPTY_POOL_MS
active block past half used    SUID_URGENT_HALF_BLOCK_MS
no active block at all         SUID_URGENT_EXHAUSTED_MS
=============================  ===========================

Caps compose by taking the minimum.
"""

import asyncio
import logging
import time
from collections.abc import Callable

from suid.allocator import ID_SIZE, LocalAllocator
from suid.config import Settings
from suid.enums import CycleState
from suid.exceptions import ReplenishError, TransientServiceError
from suid.metrics import SUID_REPLENISH_RETRIES_TOTAL
from suid.pool import BlockPoolStore

__all__ = ["BackoffController", "RETRYABLE_STATUS_CODES"]

RETRYABLE_STATUS_CODES = (500, 502, 503, 504)
HALF_BLOCK = ID_SIZE // 2


class BackoffController:
    """Tracks the in-flight replenishment cycle and schedules retries.

    Args:
        settings: Retry budget, throttle window and urgency caps
        allocator: Read for urgency (active block, current_id)
        store: Read for urgency (pool size)
        clock: Monotonic seconds; injectable for tests
        logger: Logger for give-up and retry events
    """

    def __init__(
        self,
        settings: Settings,
        allocator: LocalAllocator,
        store: BlockPoolStore,
        clock: Callable[[], float] = time.monotonic,
        logger: logging.Logger | None = None,
    ):
        self._settings = settings
        self._allocator = allocator
        self._store = store
        self._clock = clock
        self._logger = logger or logging.getLogger("suid")
        self.retries = 0
        self.started = 0.0
        self.state = CycleState.IDLE
        self.last_wait_ms: int | None = None
        self._timers: set[asyncio.TimerHandle] = set()

    @property
    def pending_retries(self) -> list[asyncio.TimerHandle]:
        """Scheduled retries that have neither fired nor been cancelled, oldest first."""
        live = [timer for timer in self._timers if not timer.cancelled()]
        return sorted(live, key=lambda timer: timer.when())

    @property
    def pending_retry(self) -> asyncio.TimerHandle | None:
        """Handle of the latest scheduled retry, if one has not fired yet."""
        pending = self.pending_retries
        return pending[-1] if pending else None

    def is_recent(self) -> bool:
        """Whether a new trigger should be swallowed by the running cycle.

        Suppressed only while retries remain and either the cycle started
        within the throttle window or the active block is under half used.
        """
        if not self.retries:
            return False
        elapsed_ms = (self._clock() - self.started) * 1000
        current_id = self._allocator.current_id
        return elapsed_ms < self._settings.SUID_THROTTLE_MS or bool(current_id and current_id < HALF_BLOCK)

    def begin_cycle(self) -> None:
        self.retries = self._settings.SUID_RETRY_BUDGET
        self.started = self._clock()
        self.state = CycleState.REQUESTING
        self.last_wait_ms = None

    def succeed(self) -> None:
        self._reset(CycleState.SUCCEEDED)

    def reset(self) -> None:
        self._reset(CycleState.IDLE)

    def compute_wait(self, retry_after: int | None = None) -> int:
        """Milliseconds to wait before the next attempt."""
        wait = self._settings.SUID_RETRY_DEFAULT_MS
        if retry_after is not None:
            wait = retry_after * 1000

        if self._store.size() == 0:
            wait = min(wait, self._settings.SUID_URGENT_EMPTY_POOL_MS)
        if self._allocator.current_id > HALF_BLOCK:
            wait = min(wait, self._settings.SUID_URGENT_HALF_BLOCK_MS)
        if self._allocator.active_block is None:
            wait = min(wait, self._settings.SUID_URGENT_EXHAUSTED_MS)
        return wait

    def handle_failure(self, error: ReplenishError, retry: Callable[[], None]) -> int | None:
        """Decide what to do after a failed request.

        Returns:
            The scheduled wait in milliseconds, or ``None`` if the cycle was abandoned.
        """
        if not isinstance(error, TransientServiceError):
            self._logger.error(f"Unable to fetch suid blocks from server: {error}")
            self._reset(CycleState.GIVEN_UP)
            return None

        if not self.retries:
            self._logger.error(
                f"Giving up fetching suid blocks after {self._settings.SUID_RETRY_BUDGET + 1} attempts "
                f"to fetch from server url: {self._settings.SUID_SERVER_URL}"
            )
            self._reset(CycleState.GIVEN_UP)
            return None

        self.retries -= 1
        wait = self.compute_wait(error.retry_after)
        self.state = CycleState.RETRYING
        self.last_wait_ms = wait
        self._logger.info(f"Suid block request failed ({error}); retrying in {wait}ms, {self.retries} retries left")
        SUID_REPLENISH_RETRIES_TOTAL.inc()
        self._schedule(wait, retry)
        return wait

    def cancel(self) -> None:
        """Drop every scheduled retry, including ones left by earlier cycles; only used on shutdown."""
        for timer in self._timers:
            timer.cancel()
        self._timers.clear()

    def _schedule(self, wait_ms: int, retry: Callable[[], None]) -> None:
        loop = asyncio.get_running_loop()
        timer: asyncio.TimerHandle | None = None

        def fire() -> None:
            self._timers.discard(timer)
            self.state = CycleState.REQUESTING
            retry()

        timer = loop.call_later(wait_ms / 1000, fire)
        self._timers.add(timer)

    def _reset(self, state: CycleState) -> None:
        self.retries = 0
        self.started = 0.0
        self.state = state
