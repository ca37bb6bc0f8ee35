import os
import sqlite3

import pytest

from todo_api.db import Database


def table_names(conn):
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
    return {r["name"] for r in rows}


class TestDatabaseLifecycle:
    def test_initialize_creates_parent_dir_file_and_schema(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "todos.db"
        database = Database(str(path))
        conn = database.initialize()
        try:
            assert os.path.exists(path)
            assert {"users", "todos"} <= table_names(conn)
            assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
        finally:
            database.close()

    def test_initialize_is_idempotent(self, tmp_path):
        database = Database(str(tmp_path / "todos.db"))
        first = database.initialize()
        second = database.initialize()
        assert first is second
        database.close()

    def test_connection_initializes_lazily(self, tmp_path):
        database = Database(str(tmp_path / "todos.db"))
        assert not database.is_open
        conn = database.connection()
        assert database.is_open
        assert database.connection() is conn
        database.close()

    def test_close_then_connection_reopens(self, tmp_path):
        database = Database(str(tmp_path / "todos.db"))
        first = database.connection()
        database.close()
        assert not database.is_open
        # closing twice is harmless
        database.close()
        second = database.connection()
        assert second is not first
        assert {"users", "todos"} <= table_names(second)
        database.close()

    def test_data_survives_reopen(self, tmp_path):
        database = Database(str(tmp_path / "todos.db"))
        with database.transaction() as conn:
            conn.execute(
                "INSERT INTO users (email, password, name, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
                ("a@x.com", "hash", "A", "2025-01-01T00:00:00+00:00", "2025-01-01T00:00:00+00:00"),
            )
        database.close()
        with database.transaction() as conn:
            assert conn.execute("SELECT COUNT(*) FROM users").fetchone()[0] == 1
        database.close()


class TestTransactions:
    def test_rollback_on_error(self, db):
        with pytest.raises(RuntimeError):
            with db.transaction() as conn:
                conn.execute(
                    "INSERT INTO users (email, password, name, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
                    ("a@x.com", "hash", "A", "t", "t"),
                )
                raise RuntimeError("boom")
        with db.transaction() as conn:
            assert conn.execute("SELECT COUNT(*) FROM users").fetchone()[0] == 0

    def test_foreign_key_enforced(self, db):
        with pytest.raises(sqlite3.IntegrityError):
            with db.transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO todos (user_id, title, completed, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (12345, "orphan", 0, "t", "t"),
                )


class TestReset:
    def test_reset_drops_all_rows(self, db, users, todos):
        user = users.create("a@x.com", "password1", "A")
        todos.create(user_id=user["id"], title="Buy milk")
        db.reset()
        assert users.find_all() == []
        assert todos.find_by_user_id(user["id"]) == []
        assert {"users", "todos"} <= table_names(db.connection())
