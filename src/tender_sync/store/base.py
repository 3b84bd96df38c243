"""Shared SQLite plumbing for the stores."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from tender_sync.errors import PersistenceError

DEFAULT_DB_PATH = "tender_sync.db"


class SQLiteStore:
    """Base for stores sharing one database file and schema."""

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH):
        self._db_path = Path(db_path)
        self._ensure_schema()

    def _connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        schema_path = Path(__file__).parent / "schema.sql"
        with self._transaction() as conn:
            conn.executescript(schema_path.read_text())

    @contextmanager
    def _transaction(self, error_cls: type[PersistenceError] = PersistenceError) -> Iterator[sqlite3.Connection]:
        """Connection committed on success; sqlite errors re-raised as PersistenceError."""
        conn = self._connection()
        try:
            with conn:
                yield conn
        except sqlite3.Error as e:
            raise error_cls(str(e), code=type(e).__name__) from e
        finally:
            conn.close()
