"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

import random
from typing import Callable, Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.models import PlayerRecord, SetupRecord
from src.db.schema import Base

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


# --- MOCK DEPENDENCIES ----
class MockRepository:
    """Mock the SetupRepository using a single slot."""

    def __init__(self) -> None:
        self._record: SetupRecord | None = None

    def save_setup(self, record: SetupRecord) -> SetupRecord:
        self._record = record
        return record

    def get_setup(self) -> SetupRecord | None:
        return self._record

    def delete_setup(self) -> SetupRecord | None:
        record, self._record = self._record, None
        return record


class FixedCoin(random.Random):
    """A coin that always lands the same way: below 0.5 means player A gets white."""

    def __init__(self, value: float) -> None:
        super().__init__()
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def mock_repository() -> MockRepository:
    return MockRepository()


@pytest.fixture
def a_plays_white() -> FixedCoin:
    return FixedCoin(0.0)


@pytest.fixture
def a_plays_black() -> FixedCoin:
    return FixedCoin(0.99)


@pytest.fixture
def make_record() -> Callable[..., SetupRecord]:
    """Build a handoff record by hand: Alice is player A, Bob is player B."""

    def _make_record(
        a_color: str = "white", time_a: int = 300, time_b: int = 300
    ) -> SetupRecord:
        b_color = "black" if a_color == "white" else "white"
        return SetupRecord(
            player_a=PlayerRecord(name="Alice", color=a_color, time_left=time_a),
            player_b=PlayerRecord(name="Bob", color=b_color, time_left=time_b),
            current_turn="white",
        )

    return _make_record
