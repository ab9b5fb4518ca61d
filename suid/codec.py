"""Textual encodings for Suid values.

Canonical form is lowercase base-36 with no padding; zero renders as ``"0"``.
Older deployments stored base-32 strings over an alphabet without the
ambiguous glyphs ``b``, ``l``, ``o`` and ``q``, then compressed runs of
``00``..``03`` into exactly those four glyphs. That form is decoded here
for compatibility but never produced for new values.

Example:
    >>> encode(1903154)
    '14she'
    >>> decode("14she")
    1903154
    >>> decode("1b", SuidFormat.BASE32)
    1024
"""

from suid.enums import SuidFormat
from suid.exceptions import InvalidEncoding

__all__ = [
    "BASE36_ALPHABET",
    "BASE32_ALPHABET",
    "REPLACEMENT_SYMBOLS",
    "MAX_SAFE_INTEGER",
    "validate_value",
    "encode",
    "decode",
    "looks_valid",
    "to_base32",
    "compress",
    "decompress",
]

BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
BASE32_ALPHABET = "0123456789acdefghijkmnprstuvwxyz"
REPLACEMENT_SYMBOLS = (("b", "00"), ("l", "01"), ("o", "02"), ("q", "03"))

# 2**53 - 1, the largest integer a double holds without precision loss.
MAX_SAFE_INTEGER = 9007199254740991
MAX_ENCODED_LENGTH = 11

_BASE36_INDEX = {char: idx for idx, char in enumerate(BASE36_ALPHABET)}
_BASE32_INDEX = {char: idx for idx, char in enumerate(BASE32_ALPHABET)}


def validate_value(value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"value must be an int, got {value!r}")
    if value < 0:
        raise ValueError("Number must be non-negative")
    if value > MAX_SAFE_INTEGER:
        raise ValueError(f"Number must not exceed {MAX_SAFE_INTEGER}")


def _render(value: int, alphabet: str) -> str:
    if value == 0:
        return alphabet[0]

    base = len(alphabet)
    result = []
    while value > 0:
        value, remainder = divmod(value, base)
        result.append(alphabet[remainder])
    return "".join(result[::-1])


def _parse(text: str, index: dict[str, int], base: int) -> int:
    if not text:
        raise InvalidEncoding(text, "empty string")

    result = 0
    for char in text:
        digit = index.get(char)
        if digit is None:
            raise InvalidEncoding(text, f"character {char!r} is not in the alphabet")
        result = result * base + digit

    if result > MAX_SAFE_INTEGER:
        raise InvalidEncoding(text, "value exceeds the safe integer range")
    return result


def encode(value: int) -> str:
    """Render ``value`` as canonical lowercase base-36."""
    validate_value(value)
    return _render(value, BASE36_ALPHABET)


def decode(text: str, fmt: SuidFormat = SuidFormat.BASE36) -> int:
    """Parse ``text`` in the encoding named by ``fmt``.

    Raises:
        InvalidEncoding: empty input, a character outside the alphabet,
            or a value beyond ``MAX_SAFE_INTEGER``.
    """
    if fmt is SuidFormat.BASE32:
        return _parse(decompress(text), _BASE32_INDEX, 32)
    return _parse(text, _BASE36_INDEX, 36)


def looks_valid(text: str) -> bool:
    """Cheap admissibility filter for canonical base-36 strings.

    This is a heuristic. A true result does not promise ``decode`` will
    succeed: an 11-character string led by ``2`` may still overflow.
    """
    if not isinstance(text, str) or not 0 < len(text) <= MAX_ENCODED_LENGTH:
        return False
    if any(char not in _BASE36_INDEX for char in text):
        return False
    if len(text) == MAX_ENCODED_LENGTH and text[0] not in "012":
        return False
    return True


def to_base32(value: int) -> str:
    """Render ``value`` in the uncompressed legacy base-32 alphabet."""
    validate_value(value)
    return _render(value, BASE32_ALPHABET)


def compress(text: str) -> str:
    for symbol, sequence in REPLACEMENT_SYMBOLS:
        text = text.replace(sequence, symbol)
    return text


def decompress(text: str) -> str:
    for symbol, sequence in REPLACEMENT_SYMBOLS:
        text = text.replace(symbol, sequence)
    return text
