"""Core package for the user records service."""

from __future__ import annotations

from typing import Any

from .database import ConstraintViolation, Database, StoreError, resolve_database_path


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the combined root + API application."""

    from .application import create_application as _create_application

    return _create_application(*args, **kwargs)


def create_api_app(*args: Any, **kwargs: Any):
    """Factory function for the API-only application."""

    from .api import create_app as _create_api_app

    return _create_api_app(*args, **kwargs)


__all__ = [
    "ConstraintViolation",
    "Database",
    "StoreError",
    "resolve_database_path",
    "create_app",
    "create_api_app",
]
