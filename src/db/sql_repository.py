"""Implementation of SetupRepository using SQLAlchemy"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.core.exceptions import RepositoryError, SetupError
from src.core.models import SetupRecord
from src.db.repository import SETUP_KEY
from src.db.schema import DBSetupRecord

logger = logging.getLogger(__name__)


class SQLSetupRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session, key: str = SETUP_KEY) -> None:
        self.db = db_session
        self.key = key

    def save_setup(self, record: SetupRecord) -> SetupRecord:
        """Store the record written by the setup screen, replacing any previous one."""
        record_db = self._fetch_record()
        if record_db is None:
            record_db = DBSetupRecord(key=self.key, payload=record.to_dict())
            self.db.add(record_db)
        else:
            record_db.payload = record.to_dict()
        self._commit("store")
        self.db.refresh(record_db)
        logger.debug("Stored setup record under %r", self.key)
        return self._to_model(record_db)

    def get_setup(self) -> SetupRecord | None:
        """The stored record, if there is one."""
        record_db = self._fetch_record()
        if record_db is None:
            return None
        return self._to_model(record_db)

    def delete_setup(self) -> SetupRecord | None:
        """Remove the record. Returns what was stored, if anything could still be decoded."""
        record_db = self._fetch_record()
        if record_db is None:
            return None
        try:
            record = self._to_model(record_db)
        except SetupError:
            record = None
        self.db.delete(record_db)
        self._commit("delete")
        logger.debug("Deleted setup record under %r", self.key)
        return record

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Could not {action} setup record {self.key!r}.") from e

    def _fetch_record(self) -> DBSetupRecord | None:
        query = select(DBSetupRecord).where(DBSetupRecord.key == self.key)
        return self.db.scalar(query)

    def _to_model(self, record_db: DBSetupRecord) -> SetupRecord:
        """Convert SQLAlchemy model to data transfer model."""
        try:
            return SetupRecord.from_dict(record_db.payload)
        except (KeyError, TypeError) as e:
            raise SetupError(f"Stored setup record {self.key!r} is corrupt.") from e
