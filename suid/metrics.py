"""Prometheus collectors for the suid client."""

from prometheus_client import Counter, Gauge

__all__ = [
    "SUID_ALLOCATIONS_TOTAL",
    "SUID_POOL_EXHAUSTED_TOTAL",
    "SUID_REPLENISH_REQUESTS_TOTAL",
    "SUID_REPLENISH_RETRIES_TOTAL",
    "SUID_BLOCKS_RECEIVED_TOTAL",
    "SUID_POOL_SIZE",
]

SUID_ALLOCATIONS_TOTAL = Counter(
    "suid_allocations_total",
    "Identifiers handed out by the local allocator",
)
SUID_POOL_EXHAUSTED_TOTAL = Counter(
    "suid_pool_exhausted_total",
    "Allocation calls rejected because no block was available",
)
SUID_REPLENISH_REQUESTS_TOTAL = Counter(
    "suid_replenish_requests_total",
    "Replenishment requests sent to the block allocation service",
    ["status"],
)
SUID_REPLENISH_RETRIES_TOTAL = Counter(
    "suid_replenish_retries_total",
    "Replenishment retries scheduled by the backoff controller",
)
SUID_BLOCKS_RECEIVED_TOTAL = Counter(
    "suid_blocks_received_total",
    "Blocks granted by the block allocation service",
)
SUID_POOL_SIZE = Gauge(
    "suid_pool_size",
    "Blocks currently held in the local pool",
)
