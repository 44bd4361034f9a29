"""Shared pytest fixtures."""
from __future__ import annotations

import pytest


class FakeClock:
    """Manually advanced clock returning integer milliseconds."""

    def __init__(self, start: int = 0):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now

    def set(self, ms: int) -> int:
        self.now = ms
        return self.now


class FakeLoad:
    """Load oracle whose reading the test controls."""

    def __init__(self, value: float = 20.0):
        self.value = value
        self.reads = 0

    def __call__(self) -> float:
        self.reads += 1
        return self.value


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def load() -> FakeLoad:
    return FakeLoad(20.0)


@pytest.fixture
def recording(clock, load):
    from recording import Recording

    return Recording(clock=clock, load_provider=load)
