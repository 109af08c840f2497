"""Shared configuration, storage and observability helpers for the glass rental service."""

from .config import DEFAULT_APP_NAME, ServiceSettings
from .database import (
    create_engine,
    create_schema,
    dispose_engines,
    get_session_factory,
    lifespan_session,
    resolve_database_url,
)
from .instrumentation import build_app, instrument_app
from .logging import configure_logging

__all__ = [
    "DEFAULT_APP_NAME",
    "ServiceSettings",
    "build_app",
    "configure_logging",
    "create_engine",
    "create_schema",
    "dispose_engines",
    "get_session_factory",
    "instrument_app",
    "lifespan_session",
    "resolve_database_url",
]
