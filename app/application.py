"""Application factory that serves the liveness route and the user API."""
from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import create_app as create_api_app
from .config import Settings, load_settings
from .database import Database

logger = logging.getLogger("usercrud.application")


def create_application(
    *,
    database: Optional[Database] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Create the combined ASGI application."""

    if settings is None:
        settings = load_settings()

    if database is None:
        database = Database(settings.database_path)
        database.initialize()
        logger.info("Using database at %s", settings.database_path)

    api_app = create_api_app(database=database)

    app = FastAPI(
        title="User CRUD Service",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.database = database
    app.state.api = api_app
    app.state.settings = settings

    @app.get("/")
    async def root() -> Dict[str, str]:
        return {"message": "User CRUD API is running"}

    app.mount("/api", api_app)

    return app


__all__ = ["create_application"]
