from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000
PASSWORD_MIN_LENGTH = 8


def _validate_due_date(value: Any) -> Optional[str]:
    """
    Check that due_date is an ISO8601 date or datetime string and return it
    stripped. The string is stored as submitted, not re-formatted.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError("Due date must be a valid ISO 8601 date")
    s = value.strip()
    # fromisoformat only accepts a "Z" suffix from Python 3.11 on
    parsed = s[:-1] + "+00:00" if s.endswith(("Z", "z")) else s
    try:
        datetime.fromisoformat(parsed)
    except ValueError:
        try:
            date.fromisoformat(parsed)
        except ValueError as e:
            raise ValueError("Due date must be a valid ISO 8601 date") from e
    return s


def _validate_title(value: Optional[str]) -> str:
    if value is None:
        raise ValueError("Title is required and must be 1-200 characters")
    s = value.strip()
    if not (1 <= len(s) <= TITLE_MAX_LENGTH):
        raise ValueError("Title is required and must be 1-200 characters")
    return s


def _validate_description(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    s = value.strip()
    if len(s) > DESCRIPTION_MAX_LENGTH:
        raise ValueError("Description must not exceed 1000 characters")
    return s


class ApiModel(BaseModel):
    """Base for API schemas: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# PUBLIC_INTERFACE
class RegisterRequest(ApiModel):
    """Schema for registering a new account."""

    model_config = ConfigDict(
        json_schema_extra={"example": {"email": "a@x.com", "password": "password1", "name": "A"}}
    )

    email: EmailStr = Field(..., description="Account email; stored lowercased")
    password: str = Field(..., description="Plain-text password, at least 8 characters")
    name: str = Field(..., description="Display name")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < PASSWORD_MIN_LENGTH:
            raise ValueError("Password must be at least 8 characters")
        return v

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("Name is required")
        return s


# PUBLIC_INTERFACE
class LoginRequest(ApiModel):
    """Schema for logging in with email and password."""

    email: EmailStr = Field(..., description="Account email")
    password: str = Field(..., description="Plain-text password")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


# PUBLIC_INTERFACE
class UserOut(ApiModel):
    """A user as returned by the API. There is deliberately no password field."""

    id: int
    email: str
    name: str
    created_at: datetime
    updated_at: datetime


# PUBLIC_INTERFACE
class AuthResponse(ApiModel):
    user: UserOut
    token: str = Field(..., description="Bearer token for the Authorization header")


# PUBLIC_INTERFACE
class TodoCreate(ApiModel):
    """
    Schema for creating a new Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "completed": False,
                "dueDate": "2025-02-01",
            }
        }
    )

    title: str = Field(..., description="Short title for the todo item (1-200 characters)")
    description: Optional[str] = Field(default=None, description="Optional detailed description (<= 1000 characters)")
    completed: bool = Field(default=False, description="Completion status flag")
    due_date: Optional[str] = Field(default=None, description="Due date as an ISO8601 date or datetime string")

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> Any:
        return _validate_title(v) if isinstance(v, str) or v is None else v

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v: Any) -> Any:
        return _validate_description(v) if isinstance(v, str) or v is None else v

    @field_validator("due_date", mode="before")
    @classmethod
    def validate_due_date(cls, v: Any) -> Optional[str]:
        return _validate_due_date(v)


# PUBLIC_INTERFACE
class TodoUpdate(ApiModel):
    """
    Schema for updating an existing Todo item.
    All fields are optional; only provided fields will be updated.
    `description` and `dueDate` may be sent as null to clear them.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries and supplies",
                "completed": True,
                "dueDate": "2025-02-02T09:30:00",
            }
        }
    )

    title: Optional[str] = Field(default=None, description="Short title for the todo item (1-200 characters)")
    description: Optional[str] = Field(default=None, description="Optional detailed description (<= 1000 characters)")
    completed: Optional[bool] = Field(default=None, description="Completion status flag")
    due_date: Optional[str] = Field(default=None, description="Due date as an ISO8601 date or datetime string")

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> Any:
        return _validate_title(v) if isinstance(v, str) or v is None else v

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v: Any) -> Any:
        return _validate_description(v) if isinstance(v, str) or v is None else v

    @field_validator("completed")
    @classmethod
    def validate_completed(cls, v: Optional[bool]) -> bool:
        if v is None:
            raise ValueError("Completed must be a boolean")
        return v

    @field_validator("due_date", mode="before")
    @classmethod
    def validate_due_date(cls, v: Any) -> Optional[str]:
        return _validate_due_date(v)


# PUBLIC_INTERFACE
class TodoOut(ApiModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 123,
                "userId": 1,
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "completed": False,
                "dueDate": "2025-02-01",
                "createdAt": "2025-01-25T10:15:30.123456Z",
                "updatedAt": "2025-01-26T09:00:00.000001Z",
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the todo item")
    user_id: int = Field(..., description="Id of the owning user")
    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    completed: bool = Field(..., description="Completion status flag")
    due_date: Optional[str] = Field(default=None, description="Due date as submitted (ISO8601)")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


# PUBLIC_INTERFACE
class TodoStats(ApiModel):
    total: int
    completed: int
    pending: int
