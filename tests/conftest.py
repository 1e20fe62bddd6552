"""
Shared fixtures for thread cache tests.
"""
import asyncio

import pytest


class FakeClock:
    """Manually advanced time source (seconds)."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingFetch:
    """
    Fetch closure that records calls and returns queued results.

    Each queued item is returned (or raised, if it is an exception) by one
    call; the last item repeats once the queue is exhausted. With ``gate``
    set, every call waits on it before returning.
    """

    def __init__(self, *results, gate: asyncio.Event = None):
        self.results = list(results)
        self.calls = 0
        self.gate = gate

    async def __call__(self):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        index = min(self.calls, len(self.results)) - 1
        result = self.results[index]
        if isinstance(result, Exception):
            raise result
        return result


def run_async(coro):
    return asyncio.run(coro)


@pytest.fixture
def clock():
    return FakeClock()


async def drain(cell, rounds: int = 20) -> None:
    """Yield to the loop until the cell's in-flight fetch has finished."""
    for _ in range(rounds):
        if not cell.fetching:
            return
        await asyncio.sleep(0)
