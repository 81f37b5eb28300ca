"""DuckDB connection management."""

import threading
from pathlib import Path

import duckdb
from loguru import logger

from app.models import ALL_DDL
from settings import DB_PATH


def init_tables(conn: duckdb.DuckDBPyConnection) -> None:
    """Initialize all tables from DDL statements (idempotent - uses IF NOT EXISTS)."""
    for ddl in ALL_DDL:
        conn.execute(ddl)
    logger.info("DB tables initialized")


class Database:
    """Owned DuckDB connection handing out one cursor per thread.

    Writers take ``write_lock`` so concurrent upserts of one key never
    conflict inside DuckDB.
    """

    def __init__(self, path: str = DB_PATH):
        self.path = path
        self.write_lock = threading.Lock()
        self._conn: duckdb.DuckDBPyConnection | None = None
        self._cursors: dict[int, duckdb.DuckDBPyConnection] = {}
        self._cursors_lock = threading.Lock()

    def connect(self) -> "Database":
        """Open the database and create tables."""
        if self._conn is None:
            if self.path != ":memory:":
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = duckdb.connect(self.path)
            init_tables(self._conn)
            logger.debug("DB connected: {}", self.path)
        return self

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def cursor(self) -> duckdb.DuckDBPyConnection:
        """Get this thread's cursor."""
        thread_id = threading.get_ident()
        with self._cursors_lock:
            if self._conn is None:
                raise duckdb.ConnectionException(f"Database {self.path} is closed")
            cur = self._cursors.get(thread_id)
            if cur is None:
                cur = self._conn.cursor()
                self._cursors[thread_id] = cur
            return cur

    def close(self) -> None:
        """Close all cursors and the connection."""
        with self._cursors_lock:
            for cur in self._cursors.values():
                cur.close()
            self._cursors.clear()
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.debug("DB connection closed")
