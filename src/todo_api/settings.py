from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "your-secret-key-change-in-production"
DEFAULT_JWT_EXPIRY_SECONDS = 24 * 60 * 60

_DURATION_UNITS = {"s": 1, "m": 60, "h": 60 * 60, "d": 24 * 60 * 60}
_DURATION_RE = re.compile(r"^(\d+)\s*([smhd]?)$")


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - DB_PATH: path to the sqlite db file. Default './data/todos.db'
    - JWT_SECRET: shared secret used to sign bearer tokens
    - JWT_EXPIRY: token lifetime, e.g. '24h', '30m', '3600' (default: 24h)
    - HOST / PORT: listen address for `python -m todo_api` (default: 0.0.0.0:3000)
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: root log level (default: INFO)
    """

    db_path: str = "./data/todos.db"
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_expiry_seconds: int = DEFAULT_JWT_EXPIRY_SECONDS
    host: str = "0.0.0.0"
    port: int = 3000
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def parse_duration(value: str, default: int = DEFAULT_JWT_EXPIRY_SECONDS) -> int:
    """
    Parse a duration such as '24h', '30m', '45s', '7d' or a bare number of
    seconds. Returns `default` when the value cannot be parsed.
    """
    match = _DURATION_RE.match(value.strip().lower())
    if not match:
        return default
    amount, unit = match.groups()
    seconds = int(amount) * _DURATION_UNITS[unit or "s"]
    return seconds if seconds > 0 else default


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return default


def _parse_origins(origins_value: str) -> List[str]:
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from the environment (and a .env file if present)."""
    load_dotenv()

    expiry_raw = _get_env("JWT_EXPIRY", "24h")
    expiry = parse_duration(expiry_raw)
    secret = _get_env("JWT_SECRET", DEFAULT_JWT_SECRET)
    if secret == DEFAULT_JWT_SECRET:
        logger.warning("JWT_SECRET is not set; using the development default secret")

    return Settings(
        db_path=_get_env("DB_PATH", "./data/todos.db").strip(),
        jwt_secret=secret,
        jwt_expiry_seconds=expiry,
        host=_get_env("HOST", "0.0.0.0").strip(),
        port=_parse_int(_get_env("PORT", "3000"), 3000),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
    )
