"""Protocol repository for the setup -> match screen handoff (SQLAlchemy implementation in sql_repository.py)."""

from typing import Protocol

from src.core.models import SetupRecord

# Mirrors the storage key the browser used for the same handoff.
SETUP_KEY = "chessGameState"


class SetupRepository(Protocol):
    """Persistence layer orchestration"""

    def save_setup(self, record: SetupRecord) -> SetupRecord:
        """Store the record written by the setup screen, replacing any previous one."""
        ...

    def get_setup(self) -> SetupRecord | None:
        """The stored record, if there is one. Raises SetupError when the stored data is corrupt."""
        ...

    def delete_setup(self) -> SetupRecord | None:
        """Remove the record (on new game)."""
        ...
