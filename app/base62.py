"""Base62 encoding utilities for short codes.

Alphabet
========
::
    0123456789 abcdefghijklmnopqrstuvwxyz ABCDEFGHIJKLMNOPQRSTUVWXYZ
    └─ 0..9 ─┘ └──────── 10..35 ───────┘ └──────── 36..61 ───────┘

Examples
========
::
    encode(0)      -> "0"
    encode(61)     -> "Z"
    encode(62)     -> "10"
    encode(12345)  -> "3d7"
    decode("3d7")  -> 12345

Encoded strings are not ordered lexicographically by value ("Z" > "10").
"""

from nanoid import generate

from app.exceptions import InvalidSymbolError

__all__ = ["BASE62_ALPHABET", "encode", "decode", "random_code"]

BASE62_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
_BASE = len(BASE62_ALPHABET)
_POSITIONS = {symbol: index for index, symbol in enumerate(BASE62_ALPHABET)}


def encode(number: int) -> str:
    """Encode a non-negative integer, most significant symbol first.

    Raises:
        ValueError: If ``number`` is negative.
    """
    if number < 0:
        raise ValueError("Number must be non-negative")

    if number == 0:
        return BASE62_ALPHABET[0]

    result = []
    while number > 0:
        number, remainder = divmod(number, _BASE)
        result.append(BASE62_ALPHABET[remainder])

    return "".join(result[::-1])


def decode(encoded: str) -> int:
    """Decode a base62 string back to its integer value.

    Raises:
        InvalidSymbolError: If a character is outside the alphabet or the
            string is empty.
    """
    if not encoded:
        raise InvalidSymbolError(encoded)

    value = 0
    for symbol in encoded:
        position = _POSITIONS.get(symbol)
        if position is None:
            raise InvalidSymbolError(symbol)
        value = value * _BASE + position
    return value


def random_code(length: int) -> str:
    assert isinstance(length, int) and length > 0, f"length must be a positive integer, got {length!r}"
    return generate(BASE62_ALPHABET, length)
