from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from .db import Database
from .errors import EmailExists, UserHasTodos, UserNotFound
from .models import TodoCounts, TodoEntity, UserEntity, UserWithPassword
from .security import hash_password, verify_password

_USER_COLUMNS = "id, email, name, created_at, updated_at"
_TODO_COLUMNS = "id, user_id, title, description, completed, due_date, created_at, updated_at"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_dt(value: str) -> datetime:
    return datetime.fromisoformat(value)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _is_unique_violation(exc: sqlite3.IntegrityError) -> bool:
    return "UNIQUE" in str(exc).upper()


class UserRepository:
    """
    SQLite-backed storage for user records. Owns password hashing and
    verification so the hash never leaves this module except through
    `find_by_email`.
    """

    ALLOWED_UPDATE_FIELDS = ("name", "email")

    def __init__(self, db: Database) -> None:
        self._db = db

    def _row_to_entity(self, row: sqlite3.Row) -> UserEntity:
        return {
            "id": int(row["id"]),
            "email": str(row["email"]),
            "name": str(row["name"]),
            "created_at": _parse_dt(row["created_at"]),
            "updated_at": _parse_dt(row["updated_at"]),
        }

    # PUBLIC_INTERFACE
    def create(self, email: str, password: str, name: str) -> UserEntity:
        """
        Hash the password and insert a new user.

        Raises:
            EmailExists: another user already has this email.
        """
        hashed = hash_password(password)
        now = _now()
        try:
            with self._db.transaction() as conn:
                cur = conn.execute(
                    """
                    INSERT INTO users (email, password, name, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (_normalize_email(email), hashed, name, now, now),
                )
                row = conn.execute(
                    f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (cur.lastrowid,)
                ).fetchone()
        except sqlite3.IntegrityError as exc:
            if _is_unique_violation(exc):
                raise EmailExists() from exc
            raise
        return self._row_to_entity(row)

    def find_by_id(self, user_id: int) -> Optional[UserEntity]:
        with self._db.transaction() as conn:
            row = conn.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
        return self._row_to_entity(row) if row else None

    def find_by_email(self, email: str) -> Optional[UserWithPassword]:
        """Return the user including the password hash; only meant for login."""
        with self._db.transaction() as conn:
            row = conn.execute(
                f"SELECT {_USER_COLUMNS}, password FROM users WHERE email = ?",
                (_normalize_email(email),),
            ).fetchone()
        if not row:
            return None
        user: Dict[str, Any] = dict(self._row_to_entity(row))
        user["password"] = str(row["password"])
        return user  # type: ignore[return-value]

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        return verify_password(plain_password, hashed_password)

    # PUBLIC_INTERFACE
    def update(self, user_id: int, updates: Mapping[str, Any]) -> Optional[UserEntity]:
        """
        Apply `name` and/or `email` from `updates`; other keys are ignored.
        With nothing to apply, the current record is returned untouched.

        Raises:
            EmailExists: the new email belongs to another user.
        """
        fields = [f for f in self.ALLOWED_UPDATE_FIELDS if f in updates]
        if not fields:
            return self.find_by_id(user_id)

        values: List[Any] = [
            _normalize_email(updates[f]) if f == "email" else updates[f] for f in fields
        ]
        set_clause = ", ".join(f"{f} = ?" for f in fields)
        try:
            with self._db.transaction() as conn:
                cur = conn.execute(
                    f"UPDATE users SET {set_clause}, updated_at = ? WHERE id = ?",
                    (*values, _now(), user_id),
                )
                if cur.rowcount == 0:
                    return None
                row = conn.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
        except sqlite3.IntegrityError as exc:
            if _is_unique_violation(exc):
                raise EmailExists() from exc
            raise
        return self._row_to_entity(row)

    # PUBLIC_INTERFACE
    def delete(self, user_id: int) -> bool:
        """
        Delete a user. Return True if a row was removed.

        Raises:
            UserHasTodos: the user still owns todos (foreign key is RESTRICT).
        """
        try:
            with self._db.transaction() as conn:
                cur = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
                return cur.rowcount > 0
        except sqlite3.IntegrityError as exc:
            raise UserHasTodos() from exc

    def find_all(self) -> List[UserEntity]:
        with self._db.transaction() as conn:
            rows = conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users ORDER BY created_at DESC, id DESC"
            ).fetchall()
        return [self._row_to_entity(r) for r in rows]


class TodoRepository:
    """
    SQLite-backed storage for todo records.

    Every operation takes explicit ids; ownership is checked by the callers.
    """

    ALLOWED_UPDATE_FIELDS = ("title", "description", "completed", "due_date")

    def __init__(self, db: Database) -> None:
        self._db = db

    def _row_to_entity(self, row: sqlite3.Row) -> TodoEntity:
        return {
            "id": int(row["id"]),
            "user_id": int(row["user_id"]),
            "title": str(row["title"]),
            "description": row["description"],
            "completed": bool(row["completed"]),
            "due_date": row["due_date"],
            "created_at": _parse_dt(row["created_at"]),
            "updated_at": _parse_dt(row["updated_at"]),
        }

    # PUBLIC_INTERFACE
    def create(
        self,
        user_id: int,
        title: str,
        description: Optional[str] = None,
        completed: bool = False,
        due_date: Optional[str] = None,
    ) -> TodoEntity:
        """Insert a todo owned by `user_id` and return the stored record."""
        now = _now()
        try:
            with self._db.transaction() as conn:
                cur = conn.execute(
                    """
                    INSERT INTO todos (user_id, title, description, completed, due_date, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (user_id, title, description or None, 1 if completed else 0, due_date or None, now, now),
                )
                row = conn.execute(f"SELECT {_TODO_COLUMNS} FROM todos WHERE id = ?", (cur.lastrowid,)).fetchone()
        except sqlite3.IntegrityError as exc:
            # the owning user no longer exists
            raise UserNotFound() from exc
        return self._row_to_entity(row)

    def find_by_id(self, todo_id: int) -> Optional[TodoEntity]:
        with self._db.transaction() as conn:
            row = conn.execute(f"SELECT {_TODO_COLUMNS} FROM todos WHERE id = ?", (todo_id,)).fetchone()
        return self._row_to_entity(row) if row else None

    def find_by_user_id(self, user_id: int) -> List[TodoEntity]:
        """All todos of a user, newest first."""
        with self._db.transaction() as conn:
            rows = conn.execute(
                f"""
                SELECT {_TODO_COLUMNS} FROM todos
                WHERE user_id = ?
                ORDER BY created_at DESC, id DESC
                """,
                (user_id,),
            ).fetchall()
        return [self._row_to_entity(r) for r in rows]

    # PUBLIC_INTERFACE
    def update(self, todo_id: int, updates: Mapping[str, Any]) -> Optional[TodoEntity]:
        """
        Apply the allowed fields present in `updates` and bump `updated_at`.

        Unknown keys are ignored. When no allowed field is present the record
        is returned as stored, with `updated_at` left alone. Returns None if
        no todo has this id.
        """
        fields = [f for f in self.ALLOWED_UPDATE_FIELDS if f in updates]
        if not fields:
            return self.find_by_id(todo_id)

        values: List[Any] = []
        for f in fields:
            value = updates[f]
            if f == "completed":
                value = 1 if value else 0
            values.append(value)
        set_clause = ", ".join(f"{f} = ?" for f in fields)

        with self._db.transaction() as conn:
            cur = conn.execute(
                f"UPDATE todos SET {set_clause}, updated_at = ? WHERE id = ?",
                (*values, _now(), todo_id),
            )
            if cur.rowcount == 0:
                return None
            row = conn.execute(f"SELECT {_TODO_COLUMNS} FROM todos WHERE id = ?", (todo_id,)).fetchone()
        return self._row_to_entity(row)

    def delete(self, todo_id: int) -> bool:
        with self._db.transaction() as conn:
            cur = conn.execute("DELETE FROM todos WHERE id = ?", (todo_id,))
            return cur.rowcount > 0

    def belongs_to_user(self, todo_id: int, user_id: int) -> bool:
        with self._db.transaction() as conn:
            row = conn.execute(
                "SELECT id FROM todos WHERE id = ? AND user_id = ?", (todo_id, user_id)
            ).fetchone()
        return row is not None

    def count_by_user_id(self, user_id: int) -> TodoCounts:
        with self._db.transaction() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS total, SUM(completed) AS completed FROM todos WHERE user_id = ?",
                (user_id,),
            ).fetchone()
        total = int(row["total"] or 0)
        completed = int(row["completed"] or 0)
        return {"total": total, "completed": completed, "pending": total - completed}
