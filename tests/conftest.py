"""Shared test fixtures."""

from datetime import UTC, datetime

import pytest

from bot_storage import FileBackend


class FixedClock:
    """Clock frozen at ``instant`` until a test moves it."""

    def __init__(self, instant: datetime) -> None:
        self.instant = instant

    def now(self) -> datetime:
        return self.instant


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 1, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "storage.db")


@pytest.fixture
async def file_backend(db_path, clock):
    backend = FileBackend(db_path, clock=clock)
    await backend.open()
    yield backend
    await backend.close()
