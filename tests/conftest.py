import pytest

import throttle.core.item as item_mod


class FakeTimer:
    """Stand-in for a scheduled expiry that the test fires by hand."""

    def __init__(self, seconds, callback) -> None:
        self.seconds = seconds
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.callback()


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_timers(monkeypatch):
    timers = []

    def fake_schedule(seconds, callback):
        timer = FakeTimer(seconds, callback)
        timers.append(timer)
        return timer

    monkeypatch.setattr(item_mod, "schedule", fake_schedule)
    return timers


@pytest.fixture
def fake_clock(monkeypatch):
    clock = FakeClock()
    monkeypatch.setattr(item_mod.time, "monotonic", clock)
    return clock
