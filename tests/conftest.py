from __future__ import annotations

import pytest

from tests.fakes import EventSink, FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sink() -> EventSink:
    return EventSink()
