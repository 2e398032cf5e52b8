from datetime import datetime

import pytest


class FakeClock:
    """Callable clock returning a settable local wall-clock time."""

    def __init__(self, when: datetime):
        self.now = when.timestamp()

    def set(self, when: datetime):
        self.now = when.timestamp()

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 6, 5, 12, 0))
