"""Shared fixtures for arbiter tests.

Service tests run against an AsyncMock session whose ``execute`` results are
queued per test; the cache and notifier are in-memory recorders.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from factories import FakeCache, RecordingNotifier


@pytest.fixture
def mock_db():
    """Create a mock AsyncSession."""
    session = AsyncMock()
    session.add = MagicMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.refresh = AsyncMock()
    return session


@pytest.fixture
def cache():
    return FakeCache()


@pytest.fixture
def notifier():
    return RecordingNotifier()
