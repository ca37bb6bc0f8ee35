from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from threading import RLock
from typing import Generator, Optional

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email TEXT NOT NULL UNIQUE,
    password TEXT NOT NULL,
    name TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS todos (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE RESTRICT,
    title TEXT NOT NULL,
    description TEXT NULL,
    completed INTEGER NOT NULL DEFAULT 0,
    due_date TEXT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_todos_user_id ON todos(user_id);
CREATE INDEX IF NOT EXISTS idx_todos_created_at ON todos(created_at);
"""


class Database:
    """
    Owner of the single SQLite connection shared by all repositories.

    The connection is opened with `check_same_thread=False` because FastAPI
    runs sync endpoints on a thread pool; every use goes through `_lock` so
    statements from concurrent requests never interleave.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._lock = RLock()
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def path(self) -> str:
        return self._db_path

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    # PUBLIC_INTERFACE
    def initialize(self) -> sqlite3.Connection:
        """
        Open the connection and apply the schema. Safe to call repeatedly;
        an already open connection is returned as-is.
        """
        with self._lock:
            if self._conn is not None:
                return self._conn

            if self._db_path != ":memory:":
                os.makedirs(os.path.dirname(os.path.abspath(self._db_path)), exist_ok=True)

            conn = sqlite3.connect(self._db_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            conn.executescript(SCHEMA)
            conn.commit()
            self._conn = conn
            logger.info("Database initialized at: %s", self._db_path)
            return conn

    # PUBLIC_INTERFACE
    def connection(self) -> sqlite3.Connection:
        """Return the open connection, initializing it on first use."""
        with self._lock:
            if self._conn is None:
                return self.initialize()
            return self._conn

    # PUBLIC_INTERFACE
    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Hold the connection lock for the duration of the block. Commits when
        the block exits normally and rolls back if it raises.
        """
        with self._lock:
            conn = self.connection()
            try:
                yield conn
            except BaseException:
                conn.rollback()
                raise
            else:
                conn.commit()

    # PUBLIC_INTERFACE
    def close(self) -> None:
        """Close the connection; a later `connection()` call opens a new one."""
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
            logger.info("Database connection closed")

    # PUBLIC_INTERFACE
    def reset(self) -> None:
        """Drop all tables and recreate the schema. Intended for test harnesses."""
        with self._lock:
            conn = self.connection()
            conn.execute("DROP TABLE IF EXISTS todos")
            conn.execute("DROP TABLE IF EXISTS users")
            conn.executescript(SCHEMA)
            conn.commit()
            logger.info("Database reset complete")
