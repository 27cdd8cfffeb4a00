"""Shared fixtures for timeline tests."""

import tempfile
from pathlib import Path

import pytest

from timekeeper.database.repository import TimelineStore
from timekeeper.database.session import close_db, init_db


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        init_db(db_path)
        yield db_path
        close_db()


@pytest.fixture
def store(temp_db):
    """A TimelineStore over the temporary database."""
    return TimelineStore()
