from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from .errors import InvalidToken

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


@dataclass(frozen=True)
class TokenIdentity:
    """Identity decoded from a verified bearer token."""

    user_id: int
    email: str


class TokenService:
    """
    Issues and verifies signed, time-limited bearer tokens (JWT, HS256).

    Claims:
    - sub: the user id, as a string
    - email: the user's email at issue time
    - iat / exp: issue and expiry times
    """

    def __init__(self, secret: str, expiry_seconds: int, algorithm: str = ALGORITHM) -> None:
        self._secret = secret
        self._expiry = timedelta(seconds=expiry_seconds)
        self._algorithm = algorithm

    # PUBLIC_INTERFACE
    def issue(self, user_id: int, email: str) -> str:
        """Return a signed token bound to `user_id` and `email`."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "email": email,
            "iat": now,
            "exp": now + self._expiry,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    # PUBLIC_INTERFACE
    def verify(self, token: str) -> TokenIdentity:
        """
        Decode and check a token.

        Raises:
            InvalidToken: expired, tampered, malformed or missing identity claims.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            logger.debug("Rejected expired token")
            raise InvalidToken("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            logger.debug("Rejected invalid token: %s", exc)
            raise InvalidToken() from exc

        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError) as exc:
            raise InvalidToken() from exc
        email = payload.get("email")
        if not isinstance(email, str):
            raise InvalidToken()
        return TokenIdentity(user_id=user_id, email=email)
