from __future__ import annotations

import pytest

from tests._fixtures.fakes import FakeClock, StubCompleter


@pytest.fixture
def clock() -> FakeClock:
    """Provide a manually advanced clock starting at t=1000s."""
    return FakeClock()


@pytest.fixture
def completer() -> StubCompleter:
    """Provide a completion double that always succeeds."""
    return StubCompleter()
