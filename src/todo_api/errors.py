from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """
    Base class for every failure that reaches a client.

    Subclasses pin `status_code`, `code` and a default `message`; the
    exception handlers registered by `register_exception_handlers` turn any
    instance into the uniform `{"error": {...}}` body.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[List[Dict[str, Any]]] = None) -> None:
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    message = "Validation failed"


class InvalidCredentials(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_CREDENTIALS"
    message = "Invalid email or password"


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHENTICATED"
    message = "Authentication required"


class InvalidToken(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_TOKEN"
    message = "Invalid or expired token"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    message = "Access denied"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    message = "Resource not found"


class TodoNotFound(NotFound):
    code = "TODO_NOT_FOUND"
    message = "Todo not found"


class UserNotFound(NotFound):
    code = "USER_NOT_FOUND"
    message = "User not found"


class EmailExists(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "EMAIL_EXISTS"
    message = "Email already exists"


class UserHasTodos(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "USER_HAS_TODOS"
    message = "User still owns todos"


# PUBLIC_INTERFACE
def error_body(message: str, code: str, details: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    """Build the uniform error body: {"error": {"message", "code", "details"?}}."""
    error: Dict[str, Any] = {"message": message, "code": code}
    if details:
        error["details"] = details
    return {"error": error}


_ECHOED_TYPES = (str, int, float, bool, type(None))

_PATH_PARAM_MESSAGES = {"id": "Invalid todo ID"}


def _validation_details(exc: RequestValidationError) -> List[Dict[str, Any]]:
    details = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        # loc looks like ("body", "title") or ("path", "id")
        field = loc[-1] if loc else ""
        if loc and loc[0] == "body" and len(loc) == 1:
            field = "body"
        msg = str(err.get("msg", "Invalid value"))
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        if loc and loc[0] == "path" and field in _PATH_PARAM_MESSAGES:
            msg = _PATH_PARAM_MESSAGES[field]
        detail: Dict[str, Any] = {"field": field, "message": msg}
        # only scalar inputs are echoed; a missing field reports the whole body
        value = err.get("input")
        if field != "password" and err.get("type") != "missing" and isinstance(value, _ECHOED_TYPES):
            detail["value"] = value
        details.append(detail)
    return details


# PUBLIC_INTERFACE
def register_exception_handlers(app: FastAPI) -> None:
    """
    Install the handlers that normalize every failure into the uniform error body.

    - AppError subclasses: their own status/code/message/details
    - Request validation errors: 400 VALIDATION_ERROR with per-field details
    - Unmatched routes: 404 NOT_FOUND
    - Anything else: 500 INTERNAL_ERROR, logged server side only
    """

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("Request %s %s failed: %s", request.method, request.url.path, exc.message)
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message, exc.code, exc.details),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=jsonable_encoder(
                error_body(ValidationFailed.message, ValidationFailed.code, _validation_details(exc))
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            content = error_body(NotFound.message, NotFound.code)
        elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            content = error_body("Method not allowed", "METHOD_NOT_ALLOWED")
        else:
            content = error_body(str(exc.detail), "HTTP_ERROR")
        return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(AppError.message, AppError.code),
        )
