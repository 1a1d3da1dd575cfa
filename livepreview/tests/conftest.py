"""
livepreview test configuration.

Fakes for the lifecycle controller's collaborators: a scheduler whose timers
fire only when a test says so, and a sandbox that records what it was given.
"""

from __future__ import annotations

import pytest

from livepreview.lifecycle import PreviewController


class FakeTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True

    def fire(self):
        """Run the callback even if cancelled; a late timer is exactly what the controller must survive."""
        self.fired = True
        self.callback()


class FakeScheduler:
    def __init__(self):
        self.timers: list[FakeTimer] = []

    def call_later(self, delay, callback):
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def run_pending(self):
        for timer in self.pending:
            timer.fire()


class RecordingSandbox:
    def __init__(self):
        self.documents = []

    def load(self, document):
        self.documents.append(document)

    @property
    def last(self):
        return self.documents[-1]


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def sandbox():
    return RecordingSandbox()


@pytest.fixture
def controller(sandbox, scheduler):
    ctrl = PreviewController(sandbox, grace_period=2.0, scheduler=scheduler)
    yield ctrl
    ctrl.close()
