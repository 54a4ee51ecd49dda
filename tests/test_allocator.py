"""Tests for short code allocation."""

import random
from unittest.mock import AsyncMock, Mock

import pytest

from app.allocator import CodeAllocator, CountSeedSource
from app.base62 import decode, encode
from app.exceptions import CodeSpaceExhaustedError
from app.store import UrlMappingStore
from tests.helpers import SequenceSeedSource


class RecordingRandomSource:
    def __init__(self, *codes: str) -> None:
        self._codes = list(codes)
        self.calls: list[int] = []

    def __call__(self, length: int) -> str:
        self.calls.append(length)
        return self._codes[min(len(self.calls), len(self._codes)) - 1]


@pytest.mark.asyncio
async def test_sequential_code_is_padded_to_length(store: UrlMappingStore) -> None:
    allocator = CodeAllocator(store, length=6, seed_source=SequenceSeedSource(42))

    code = await allocator.allocate()

    assert code == "00000G"
    assert decode(code) == 42


@pytest.mark.asyncio
async def test_collision_moves_to_next_seed(store: UrlMappingStore, make_mapping) -> None:
    await store.insert(make_mapping("00000G"))
    await store.insert(make_mapping("00000H", long_url="https://example.com/h"))
    allocator = CodeAllocator(store, length=6, seed_source=SequenceSeedSource(42))

    assert await allocator.allocate() == "00000I"


@pytest.mark.asyncio
async def test_too_long_encoding_falls_back_to_random(store: UrlMappingStore) -> None:
    random_source = RecordingRandomSource("zz")
    allocator = CodeAllocator(store, length=2, seed_source=SequenceSeedSource(62**2), random_source=random_source)

    assert await allocator.allocate() == "zz"
    assert random_source.calls == [2]


@pytest.mark.asyncio
async def test_random_fallback_after_sequential_attempts() -> None:
    store = AsyncMock(spec=UrlMappingStore)
    # Ten sequential candidates taken, first random draw taken, second free.
    store.exists_by_code.side_effect = [True] * 10 + [True, False]
    random_source = RecordingRandomSource("aaaaaa", "bbbbbb")
    allocator = CodeAllocator(store, length=6, seed_source=SequenceSeedSource(1), random_source=random_source)

    assert await allocator.allocate() == "bbbbbb"
    assert store.exists_by_code.await_count == 12
    sequential = [call.args[0] for call in store.exists_by_code.await_args_list[:10]]
    assert sequential == [encode(n).rjust(6, "0") for n in range(1, 11)]


@pytest.mark.asyncio
async def test_exhaustion_raises_after_bounded_attempts() -> None:
    store = AsyncMock(spec=UrlMappingStore)
    store.exists_by_code.return_value = True
    allocator = CodeAllocator(
        store,
        length=6,
        seed_source=SequenceSeedSource(1),
        random_source=RecordingRandomSource("taken1"),
        attempts=10,
        random_attempts=5,
    )

    with pytest.raises(CodeSpaceExhaustedError) as excinfo:
        await allocator.allocate()

    assert excinfo.value.attempts == 15
    assert store.exists_by_code.await_count == 15


@pytest.mark.asyncio
async def test_count_seed_source_adds_one_and_offset() -> None:
    store = AsyncMock(spec=UrlMappingStore)
    store.count.return_value = 5
    rng = Mock(spec=random.Random)
    rng.randrange.return_value = 7

    seed = await CountSeedSource(store, offset_bound=100, rng=rng)()

    assert seed == 13
    rng.randrange.assert_called_once_with(100)


@pytest.mark.asyncio
async def test_count_seed_source_offset_range(store: UrlMappingStore) -> None:
    source = CountSeedSource(store, offset_bound=100, rng=random.Random(7))
    seeds = [await source() for _ in range(200)]
    assert all(1 <= seed <= 100 for seed in seeds)


@pytest.mark.asyncio
async def test_reserved_route_names_are_never_allocated() -> None:
    store = AsyncMock(spec=UrlMappingStore)
    store.exists_by_code.return_value = False
    random_source = RecordingRandomSource("health", "free01")
    # Seed too large for six symbols, so every candidate is a random draw.
    allocator = CodeAllocator(store, length=6, seed_source=SequenceSeedSource(62**6), random_source=random_source)

    assert await allocator.allocate() == "free01"
    store.exists_by_code.assert_awaited_once_with("free01")
