from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .db import Database
from .errors import Unauthenticated
from .repositories import TodoRepository, UserRepository
from .tokens import TokenIdentity, TokenService

_security = HTTPBearer(auto_error=False)


def get_database(request: Request) -> Database:
    return request.app.state.db


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_user_repository(db: Database = Depends(get_database)) -> UserRepository:
    return UserRepository(db)


def get_todo_repository(db: Database = Depends(get_database)) -> TodoRepository:
    return TodoRepository(db)


# PUBLIC_INTERFACE
def get_current_identity(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_security),
    tokens: TokenService = Depends(get_token_service),
) -> TokenIdentity:
    """
    Resolve the caller's identity from the `Authorization: Bearer <token>` header.

    Raises:
        Unauthenticated: no bearer credentials were sent.
        InvalidToken: the token is expired, tampered with or malformed.
    """
    if creds is None or not creds.credentials:
        raise Unauthenticated()
    return tokens.verify(creds.credentials)
