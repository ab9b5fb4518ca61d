"""The Suid value type."""

from dataclasses import dataclass
from typing import Union

from suid import codec
from suid.enums import SuidFormat

__all__ = ["Suid"]


@dataclass(frozen=True, order=True)
class Suid:
    """Immutable service-unique identifier.

    Conversions are explicit: ``int(suid)`` for the number, ``str(suid)``
    for the canonical base-36 text. Suids compare and order by value.

    Example:
        >>> Suid(1903154)
        Suid('14she')
        >>> Suid.parse("14she") == Suid(1903154)
        True
    """

    value: int

    def __post_init__(self) -> None:
        codec.validate_value(self.value)

    @classmethod
    def parse(cls, text: str, fmt: SuidFormat = SuidFormat.BASE36) -> "Suid":
        return cls(codec.decode(text, fmt))

    @classmethod
    def of(cls, value: Union["Suid", int, str]) -> "Suid":
        """Build a Suid from another Suid, an int, or canonical text."""
        if isinstance(value, Suid):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        return cls(value)

    def to_base32(self) -> str:
        """Legacy uncompressed base-32 rendering, for diagnostics only."""
        return codec.to_base32(self.value)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return codec.encode(self.value)

    def __repr__(self) -> str:
        return f"Suid({str(self)!r})"
