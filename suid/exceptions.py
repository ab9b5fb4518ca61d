"""Error taxonomy for the suid client.

Allocation callers only ever observe ``PoolExhausted`` and ``InvalidEncoding``.
The service and persistence errors are raised and absorbed internally.
"""

__all__ = [
    "SuidError",
    "PoolExhausted",
    "InvalidEncoding",
    "ReplenishError",
    "TransientServiceError",
    "TerminalServiceError",
    "PersistenceUnavailable",
]


class SuidError(Exception):
    """Base class for all suid errors."""


class PoolExhausted(SuidError):
    """No active block and no pooled block to promote.

    Treat as backpressure: retry once replenishment has succeeded.
    """

    def __init__(self, message: str = "Unable to generate IDs. Suid block pool exhausted.") -> None:
        super().__init__(message)


class InvalidEncoding(SuidError, ValueError):
    """Text could not be decoded into a Suid."""

    def __init__(self, text: str, reason: str) -> None:
        super().__init__(f"Invalid suid encoding {text!r}: {reason}")
        self.text = text
        self.reason = reason


class ReplenishError(SuidError):
    """A replenishment request did not yield a block."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class TransientServiceError(ReplenishError):
    """5xx response or transport failure; the cycle may be retried."""

    def __init__(self, message: str, status: int | None = None, retry_after: int | None = None) -> None:
        super().__init__(message, status)
        self.retry_after = retry_after


class TerminalServiceError(ReplenishError):
    """Any other failure; the cycle is abandoned."""


class PersistenceUnavailable(SuidError):
    """The key-value substrate could not be reached."""
