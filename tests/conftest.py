"""Shared fixtures for the dashboard tests."""

import pytest

from app import create_app
from tattva.feed import ChangeFeed
from tattva.state import ResultViewState
from tattva.timers import TimerQueue


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture
def state():
    return ResultViewState(clock=lambda: "2026-10-19T12:00:00+00:00")


@pytest.fixture
def timers():
    return TimerQueue()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def app(feed):
    app = create_app({"SECRET_KEY": "test-secret", "TESTING": True, "TYPING_DELAY": 1.0}, feed=feed)
    return app


@pytest.fixture
def client(app):
    return app.test_client()
