"""Deterministic test doubles for clocks and seed sources."""

import datetime


class FakeClock:
    """Controllable clock returning timezone-aware UTC datetimes."""

    def __init__(self, start: datetime.datetime) -> None:
        self.now = start

    def __call__(self) -> datetime.datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += datetime.timedelta(**kwargs)


class SequenceSeedSource:
    """Seed source handing out predetermined seeds in order, repeating the last one."""

    def __init__(self, *seeds: int) -> None:
        self._seeds = list(seeds)
        self.calls = 0

    async def __call__(self) -> int:
        seed = self._seeds[min(self.calls, len(self._seeds) - 1)]
        self.calls += 1
        return seed
