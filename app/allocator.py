"""Short code allocation.

Generated codes come from a numeric seed (row count + 1 + a random offset)
encoded in base62 and left-padded to ``SHORT_CODE_LENGTH``. The seed is only
a hint: uniqueness is checked against the store, and the primary key on
insert has the final word.

Flow Diagram — allocate()
=========================
::
    ┌─────────────┐
    │ seed =      │
    │ count+1+rnd │
    └──────┬──────┘
           ▼
    ┌─────────────────────┐
    │ attempt 0..N-1:     │
    │ encode(seed+attempt)│──── too long? ──► random_code(length)
    └──────┬──────────────┘
           ▼
    ┌─────────────┐   unused
    │ reserved or │────────────► return code
    │ exists?     │
    └──────┬──────┘
           │ all N taken
           ▼
    ┌─────────────┐   unused
    │ random_code │────────────► return code
    │ x M         │
    └──────┬──────┘
           │ all M taken
           ▼
    CodeSpaceExhaustedError

How to Use
===========
::
    store = UrlMappingStore(db)
    allocator = CodeAllocator(store, length=6, seed_source=CountSeedSource(store))
    code = await allocator.allocate()

Tests pass a deterministic ``seed_source`` and ``random_code``.
"""

import random
from collections.abc import Awaitable, Callable

from app.base62 import BASE62_ALPHABET, encode, random_code
from app.config import RESERVED_SHORT_CODES
from app.exceptions import CodeSpaceExhaustedError
from app.store import UrlMappingStore

__all__ = ["CountSeedSource", "CodeAllocator", "SeedSource"]

SeedSource = Callable[[], Awaitable[int]]


class CountSeedSource:
    """Seed derived from the live row count plus a random offset in ``[0, offset_bound)``.

    The offset makes sequential codes harder to guess. Concurrent allocators
    can draw the same seed; the existence check and the insert conflict retry
    absorb that.
    """

    def __init__(self, store: UrlMappingStore, offset_bound: int = 100, rng: random.Random | None = None) -> None:
        self._store = store
        self._offset_bound = offset_bound
        self._rng = rng or random.Random()

    async def __call__(self) -> int:
        total = await self._store.count()
        return total + 1 + self._rng.randrange(self._offset_bound)


class CodeAllocator:
    def __init__(
        self,
        store: UrlMappingStore,
        length: int,
        seed_source: SeedSource | None = None,
        random_source: Callable[[int], str] = random_code,
        attempts: int = 10,
        random_attempts: int = 1000,
    ) -> None:
        assert length > 0, f"length must be positive, got {length!r}"
        self._store = store
        self._length = length
        self._seed_source = seed_source or CountSeedSource(store)
        self._random_source = random_source
        self._attempts = attempts
        self._random_attempts = random_attempts

    @property
    def total_attempts(self) -> int:
        return self._attempts + self._random_attempts

    def _sequential_candidate(self, value: int) -> str:
        encoded = encode(value)
        if len(encoded) > self._length:
            return self._random_source(self._length)
        return encoded.rjust(self._length, BASE62_ALPHABET[0])

    async def _is_free(self, candidate: str) -> bool:
        return candidate not in RESERVED_SHORT_CODES and not await self._store.exists_by_code(candidate)

    async def allocate(self) -> str:
        seed = await self._seed_source()

        for attempt in range(self._attempts):
            candidate = self._sequential_candidate(seed + attempt)
            if await self._is_free(candidate):
                return candidate

        for _ in range(self._random_attempts):
            candidate = self._random_source(self._length)
            if await self._is_free(candidate):
                return candidate

        raise CodeSpaceExhaustedError(self.total_attempts)
