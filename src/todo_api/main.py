from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .db import Database
from .errors import register_exception_handlers
from .routers import auth as auth_router
from .routers import todos as todos_router
from .settings import Settings, get_settings
from .tokens import TokenService

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "auth", "description": "Registration and login; both return a bearer token."},
    {"name": "todos", "description": "CRUD operations on the current user's todo items."},
]


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    The database connection and token service are created when the app
    starts (lifespan) and stored on `app.state`; the connection is closed on
    shutdown.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        db = Database(settings.db_path)
        db.initialize()
        app.state.db = db
        app.state.tokens = TokenService(settings.jwt_secret, settings.jwt_expiry_seconds)
        try:
            yield
        finally:
            db.close()

    app = FastAPI(
        title="Todo API",
        description="Backend API service for multi-user todo lists with token authentication.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings

    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # PUBLIC_INTERFACE
    @app.get("/health", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"status": "ok"}

    app.include_router(auth_router.router)
    app.include_router(todos_router.router)
    return app


app = create_app()
