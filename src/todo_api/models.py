from __future__ import annotations

from datetime import datetime
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class UserEntity(TypedDict):
    """
    A user record as returned by the repository. Never carries the password hash.

    Fields:
    - id: Unique integer identifier
    - email: Lowercased, unique email address
    - name: Display name
    - created_at / updated_at: UTC timestamps
    """

    id: int
    email: str
    name: str
    created_at: datetime
    updated_at: datetime


class UserWithPassword(UserEntity):
    """User record including the bcrypt hash; only used to authenticate."""

    password: str


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A todo record as returned by the repository.

    Fields:
    - id: Unique integer identifier
    - user_id: Owning user's id, fixed at creation
    - title: Short title (1..200 chars, trimmed on input via schemas)
    - description: Optional detailed description (<= 1000 chars)
    - completed: Boolean completion flag (stored as 0/1)
    - due_date: Optional ISO-8601 date or datetime string, kept as submitted
    - created_at / updated_at: UTC timestamps
    """

    id: int
    user_id: int
    title: str
    description: Optional[str]
    completed: bool
    due_date: Optional[str]
    created_at: datetime
    updated_at: datetime


class TodoCounts(TypedDict):
    total: int
    completed: int
    pending: int
