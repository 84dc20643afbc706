"""Pytest configuration and shared fixtures for the LP tracker tests.

Ports are faked in memory (tests/fakes.py); adapters are tested against
mocked asyncpg / aiohttp objects.
"""

import pytest

from tests.fakes import FakeGameApi, InMemoryStore, RecordingSink


async def _no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def game_api() -> FakeGameApi:
    return FakeGameApi()


@pytest.fixture
def no_sleep():
    """Sleep replacement so settle and batch delays do not slow the suite."""
    return _no_sleep
