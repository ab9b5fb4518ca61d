"""Replenishment client: leases new blocks from the allocation service.

Request Flow
============
::
    ┌─────────────┐
    │  fetch()    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Cycle still │── YES ──► no-op
    │ recent?     │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ blocks =    │── 0 ──► no-op
    │ max - pool  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ GET url     │   (asyncio task, caller never waits)
    │ ?blocks=N   │
    └──────┬──────┘
    2xx?   │
    ┌──────┴──────┐
    │ NO          │ YES
    ▼             ▼
┌─────────┐  ┌─────────┐
│ Backoff │  │ Append  │
│ handles │  │ block to│
│ failure │  │ pool    │
└─────────┘  └─────────┘

Response contract: a single JSON integer, the first value of one newly
granted block. A service granting more must be asked again.
"""

import asyncio
import json
import logging
from collections.abc import Callable

import httpx

from suid import codec
from suid.backoff import RETRYABLE_STATUS_CODES, BackoffController
from suid.config import Settings
from suid.exceptions import ReplenishError, TerminalServiceError, TransientServiceError
from suid.metrics import SUID_BLOCKS_RECEIVED_TOTAL, SUID_REPLENISH_REQUESTS_TOTAL
from suid.pool import BlockPoolStore

__all__ = ["ReplenishmentClient", "parse_retry_after"]


def parse_retry_after(value: str | None) -> int | None:
    """Seconds from a ``Retry-After`` header, or ``None`` if absent, negative or not an integer."""
    if value is None:
        return None
    try:
        seconds = int(value.strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


class ReplenishmentClient:
    """Fire-and-forget block fetcher.

    Args:
        settings: Server URL, pool maximum and request timeout
        store: Pool that granted blocks are appended to
        backoff: Cycle bookkeeping and retry scheduling
        transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests
        on_success: Called after a granted block has been pooled
        logger: Logger for request events
    """

    def __init__(
        self,
        settings: Settings,
        store: BlockPoolStore,
        backoff: BackoffController,
        transport: httpx.AsyncBaseTransport | None = None,
        on_success: Callable[[], None] | None = None,
        logger: logging.Logger | None = None,
    ):
        self._settings = settings
        self._store = store
        self._backoff = backoff
        self._transport = transport
        self._on_success = on_success
        self._logger = logger or logging.getLogger("suid")
        self._tasks: set[asyncio.Task] = set()

    # ========================================================================
    # PUBLIC API METHODS
    # ========================================================================

    def blocks_needed(self) -> int:
        return max(0, self._settings.SUID_POOL_MAX - self._store.size())

    def fetch(self) -> None:
        """Start a replenishment cycle unless one is already recent."""
        if not self._settings.SUID_SERVER_URL:
            self._logger.debug("No suid server configured, skipping block fetch")
            return
        if self._backoff.is_recent():
            return

        count = self.blocks_needed()
        if count <= 0:
            return

        self._backoff.begin_cycle()
        self._logger.info(f"Requesting {count} suid block(s) from {self._settings.SUID_SERVER_URL}")
        self._spawn(count)

    async def request_block(self, count: int) -> int:
        """Issue one request and return the granted block.

        Raises:
            TransientServiceError: 5xx status or transport failure
            TerminalServiceError: Any other status, an unusable body, or an invalid server url
        """
        try:
            async with httpx.AsyncClient(
                timeout=self._settings.SUID_REQUEST_TIMEOUT_SECONDS,
                transport=self._transport,
            ) as client:
                response = await client.get(self._settings.SUID_SERVER_URL, params={"blocks": count})
        except httpx.InvalidURL as exc:
            SUID_REPLENISH_REQUESTS_TOTAL.labels(status="invalid_url").inc()
            raise TerminalServiceError(f"Invalid suid server url: {exc}") from exc
        except httpx.TransportError as exc:
            SUID_REPLENISH_REQUESTS_TOTAL.labels(status="transport_error").inc()
            raise TransientServiceError(f"Transport error: {exc!r}") from exc

        SUID_REPLENISH_REQUESTS_TOTAL.labels(status=str(response.status_code)).inc()

        if response.is_success:
            try:
                block = json.loads(response.text)
            except ValueError as exc:
                raise TerminalServiceError(f"Unparseable block payload {response.text!r}", response.status_code) from exc
            try:
                codec.validate_value(block)
            except ValueError as exc:
                raise TerminalServiceError(f"Block payload {block!r} is not a safe integer", response.status_code) from exc
            return block

        if response.status_code in RETRYABLE_STATUS_CODES:
            raise TransientServiceError(
                f"Server responded {response.status_code}",
                response.status_code,
                parse_retry_after(response.headers.get("Retry-After")),
            )
        raise TerminalServiceError(f"Server responded {response.status_code}", response.status_code)

    async def join(self) -> None:
        """Wait until no request task is in flight; scheduled retries are not awaited."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        self._backoff.cancel()
        for task in list(self._tasks):
            task.cancel()
        await self.join()

    # ========================================================================
    # PRIVATE HELPER METHODS
    # ========================================================================

    def _retry(self) -> None:
        count = self.blocks_needed()
        if count <= 0:
            self._logger.debug("Suid pool refilled before retry fired, closing cycle")
            self._backoff.succeed()
            return
        self._spawn(count)

    def _spawn(self, count: int) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._logger.warning("No running event loop, unable to fetch suid blocks")
            self._backoff.reset()
            return

        task = loop.create_task(self._replenish(count))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _replenish(self, count: int) -> None:
        try:
            block = await self.request_block(count)
        except ReplenishError as exc:
            self._backoff.handle_failure(exc, self._retry)
            return

        self._store.append(block)
        SUID_BLOCKS_RECEIVED_TOTAL.inc()
        self._backoff.succeed()
        self._logger.info(f"Received suid block {block}")
        if self._on_success is not None:
            self._on_success()
