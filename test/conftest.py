import asyncio
from datetime import datetime, timedelta

import pytest


async def settle(rounds: int = 50) -> None:
    """Let every ready task run until the loop goes quiet."""

    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeClock:
    """Virtual clock: positive sleeps only wake up when ``advance`` passes them."""

    def __init__(self, start: datetime):
        self.current = start
        self._waiters: list[tuple[datetime, asyncio.Future]] = []

    def now(self) -> datetime:
        return self.current

    async def sleep(self, seconds: float) -> None:
        if seconds <= 0:
            await asyncio.sleep(0)
            return
        future = asyncio.get_running_loop().create_future()
        self._waiters.append((self.current + timedelta(seconds=seconds), future))
        await future

    async def advance(self, seconds: float) -> None:
        await settle()
        self.current += timedelta(seconds=seconds)
        due = [item for item in self._waiters if item[0] <= self.current]
        self._waiters = [item for item in self._waiters if item[0] > self.current]
        for _, future in due:
            if not future.done():
                future.set_result(None)
        await settle()


T0 = datetime(2026, 2, 6, 12, 0, 0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(T0)
