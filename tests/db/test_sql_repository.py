"""Unit tests for src/db/sql_repository.py"""

from typing import Any, Callable

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.core.exceptions import RepositoryError, SetupError
from src.core.models import SetupRecord
from src.db.repository import SETUP_KEY
from src.db.schema import DBSetupRecord
from src.db.sql_repository import SQLSetupRepository


def store_payload(db: Session, payload: dict[str, Any]) -> None:
    """Write a row behind the repository's back."""
    db.add(DBSetupRecord(key=SETUP_KEY, payload=payload))
    db.commit()


def test_get_from_empty_database(db_session_repo: Session) -> None:
    repo = SQLSetupRepository(db_session_repo)
    assert repo.get_setup() is None
    assert repo.delete_setup() is None


def test_save_setup(db_session_repo: Session, make_record: Callable[..., SetupRecord]) -> None:
    record = make_record()
    repo = SQLSetupRepository(db_session_repo)

    stored = repo.save_setup(record)
    assert isinstance(stored, SetupRecord)
    assert stored == record
    assert repo.get_setup() == record


def test_save_replaces_previous_record(
    db_session_repo: Session, make_record: Callable[..., SetupRecord]
) -> None:
    """There is only ever one handoff record."""
    repo = SQLSetupRepository(db_session_repo)
    repo.save_setup(make_record())
    newer = make_record(a_color="black", time_a=600, time_b=600)

    repo.save_setup(newer)

    assert repo.get_setup() == newer
    assert db_session_repo.query(DBSetupRecord).count() == 1


def test_keys_are_independent(
    db_session_repo: Session, make_record: Callable[..., SetupRecord]
) -> None:
    default = SQLSetupRepository(db_session_repo)
    other = SQLSetupRepository(db_session_repo, key="anotherSlot")
    default.save_setup(make_record())

    assert other.get_setup() is None


def test_delete_setup(db_session_repo: Session, make_record: Callable[..., SetupRecord]) -> None:
    record = make_record()
    repo = SQLSetupRepository(db_session_repo)
    repo.save_setup(record)

    assert repo.delete_setup() == record
    assert repo.get_setup() is None
    assert repo.delete_setup() is None


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"player_a": {"name": "Alice"}, "player_b": {}, "current_turn": "white"},
        {
            "player_a": {"name": "Alice", "color": "white", "time_left": 300, "rating": 1500},
            "player_b": {"name": "Bob", "color": "black", "time_left": 300},
            "current_turn": "white",
        },
    ],
)
def test_corrupt_payload(db_session_repo: Session, payload: dict[str, Any]) -> None:
    store_payload(db_session_repo, payload)
    repo = SQLSetupRepository(db_session_repo)

    with pytest.raises(SetupError):
        repo.get_setup()

    # a corrupt record can still be thrown away
    assert repo.delete_setup() is None
    assert db_session_repo.query(DBSetupRecord).count() == 0


# -- STORAGE FAILURES --
def fail_commits(db: Session, monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_commit() -> None:
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr(db, "commit", failing_commit)


def test_save_failure(
    db_session_repo: Session,
    make_record: Callable[..., SetupRecord],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    repo = SQLSetupRepository(db_session_repo)
    fail_commits(db_session_repo, monkeypatch)

    with pytest.raises(RepositoryError):
        repo.save_setup(make_record())
    assert repo.get_setup() is None


def test_delete_failure(
    db_session_repo: Session,
    make_record: Callable[..., SetupRecord],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    record = make_record()
    repo = SQLSetupRepository(db_session_repo)
    repo.save_setup(record)
    fail_commits(db_session_repo, monkeypatch)

    with pytest.raises(RepositoryError):
        repo.delete_setup()
    # rolled back: the record is still there
    assert repo.get_setup() == record
