"""Unit tests for the base62 encoder."""

import random

import pytest

from app.base62 import BASE62_ALPHABET, decode, encode, random_code
from app.exceptions import InvalidSymbolError


def test_alphabet_order() -> None:
    assert len(BASE62_ALPHABET) == 62
    assert BASE62_ALPHABET[:10] == "0123456789"
    assert BASE62_ALPHABET[10] == "a"
    assert BASE62_ALPHABET[36] == "A"


def test_encode_basic() -> None:
    assert encode(0) == "0"
    assert encode(1) == "1"
    assert encode(61) == "Z"
    assert encode(62) == "10"


def test_encode_large_numbers() -> None:
    assert encode(12345) == "3d7"
    assert encode(999999) == "4c91"


def test_encode_never_empty_and_no_leading_zero() -> None:
    for number in (1, 62, 3844, 10**12):
        encoded = encode(number)
        assert encoded
        assert encoded[0] != BASE62_ALPHABET[0]


def test_encode_negative() -> None:
    with pytest.raises(ValueError, match="Number must be non-negative"):
        encode(-1)


def test_decode_inverts_encode() -> None:
    rng = random.Random(1234)
    samples = [0, 1, 61, 62, 3843, 3844] + [rng.randrange(10**15) for _ in range(200)]
    for number in samples:
        assert decode(encode(number)) == number


def test_decode_known_value() -> None:
    assert decode("3d7") == 12345
    assert decode("000001") == 1


def test_decode_invalid_symbol() -> None:
    with pytest.raises(InvalidSymbolError) as excinfo:
        decode("ab-c")
    assert excinfo.value.symbol == "-"


def test_decode_empty_string() -> None:
    with pytest.raises(InvalidSymbolError):
        decode("")


def test_encoding_is_not_lexicographically_monotonic() -> None:
    # 61 -> "Z" sorts after 62 -> "10"
    assert encode(61) > encode(62)


def test_random_code_length_and_alphabet() -> None:
    for _ in range(100):
        code = random_code(8)
        assert len(code) == 8
        assert all(symbol in BASE62_ALPHABET for symbol in code)


def test_random_code_uniqueness() -> None:
    codes = {random_code(7) for _ in range(1000)}
    assert len(codes) == 1000
