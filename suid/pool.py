"""Durable FIFO pool of leased-but-unused blocks.

The pool lives in a single string value: the comma-joined base-36
encodings of the pending blocks, oldest first. Every access re-reads and
re-writes the whole value; the pool holds a handful of blocks at most.

Flow Diagram — load()
=====================
::
    ┌─────────────┐
    │   load()    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Substrate   │── NO ──► in-memory pool
    │ available?  │
    └──────┬──────┘
           ▼ YES
    ┌─────────────┐
    │ GET pool key│── hit ──► decode base-36
    └──────┬──────┘
           ▼ miss
    ┌─────────────┐
    │ GET legacy  │── hit ──► decode base-32
    │ key         │
    └──────┬──────┘
           ▼ miss
          []

Key Behaviours
===============
- Persistence is a best-effort cache, never the source of truth.
- Any Redis failure degrades the store to in-memory for the rest of the process.
- Legacy base-32 pools are migrated to the current key on the next save.
- Undecodable entries are logged and dropped rather than failing the caller.
- No locking: callers serialize access.
"""

import logging
from collections.abc import Iterable

import redis

from suid import codec
from suid.enums import SuidFormat
from suid.exceptions import InvalidEncoding, PersistenceUnavailable
from suid.metrics import SUID_POOL_SIZE

__all__ = ["BlockPoolStore", "parse_pool", "format_pool"]

SEPARATOR = ","


def parse_pool(raw: str | None, fmt: SuidFormat = SuidFormat.BASE36, logger: logging.Logger | None = None) -> list[int]:
    """Decode a persisted pool value, skipping entries that do not decode."""
    if not raw:
        return []

    blocks: list[int] = []
    for entry in raw.split(SEPARATOR):
        if not entry:
            continue
        try:
            blocks.append(codec.decode(entry, fmt))
        except InvalidEncoding as exc:
            (logger or logging.getLogger("suid")).warning(f"Dropping corrupt pool entry: {exc}")
    return blocks


def format_pool(blocks: Iterable[int]) -> str:
    return SEPARATOR.join(codec.encode(block) for block in blocks)


class BlockPoolStore:
    """Pool of reserved blocks persisted in Redis.

    Args:
        client: Synchronous Redis client, or ``None`` for an in-memory pool
        key: Key holding the current base-36 pool
        legacy_key: Key an older deployment may have left a base-32 pool under
        logger: Logger for degradation warnings
    """

    def __init__(
        self,
        client: redis.Redis | None,
        key: str = "suid:pool",
        legacy_key: str | None = "suidpool",
        logger: logging.Logger | None = None,
    ):
        self._client = client
        self._key = key
        self._legacy_key = legacy_key
        self._logger = logger or logging.getLogger("suid")
        self._pool: list[int] = []
        self._available = client is not None

    @property
    def persistent(self) -> bool:
        """Whether the store still writes through to Redis."""
        return self._available

    def load(self) -> list[int]:
        if self._available:
            try:
                self._pool = self._read()
            except PersistenceUnavailable as exc:
                self._degrade(exc)
        SUID_POOL_SIZE.set(len(self._pool))
        return list(self._pool)

    def save(self, blocks: Iterable[int]) -> None:
        self._pool = list(blocks)
        SUID_POOL_SIZE.set(len(self._pool))
        if self._available:
            try:
                self._write(self._pool)
            except PersistenceUnavailable as exc:
                self._degrade(exc)

    def size(self) -> int:
        return len(self.load())

    def append(self, block: int) -> None:
        blocks = self.load()
        blocks.append(block)
        self.save(blocks)

    def pop(self) -> int | None:
        """Remove and return the oldest block, or ``None`` if the pool is empty."""
        blocks = self.load()
        if not blocks:
            return None
        block = blocks.pop(0)
        self.save(blocks)
        return block

    def _read(self) -> list[int]:
        try:
            raw = self._client.get(self._key)
            if raw is not None:
                return parse_pool(raw, SuidFormat.BASE36, self._logger)
            if self._legacy_key:
                legacy = self._client.get(self._legacy_key)
                if legacy is not None:
                    return parse_pool(legacy, SuidFormat.BASE32, self._logger)
        except redis.RedisError as exc:
            raise PersistenceUnavailable(f"Unable to read suid pool: {exc}") from exc
        return []

    def _write(self, blocks: list[int]) -> None:
        try:
            self._client.set(self._key, format_pool(blocks))
            if self._legacy_key:
                self._client.delete(self._legacy_key)
        except redis.RedisError as exc:
            raise PersistenceUnavailable(f"Unable to write suid pool: {exc}") from exc

    def _degrade(self, exc: PersistenceUnavailable) -> None:
        self._available = False
        self._logger.warning(f"{exc}; keeping the suid pool in memory for this process")
