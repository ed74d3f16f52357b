"""intake_store — PostgreSQL persistence for intake answers and comments.

This package provides the blob ORM model, the shared async engine, the
key -> JSON repository and the ``IntakeStore`` adapter consumed by the
FastAPI server.
"""

from intake_store.adapter import IntakeStore
from intake_store.database import (
    DatabaseSettings,
    check_connection,
    dispose_engine,
    get_engine,
    get_session_factory,
    load_database_settings,
)
from intake_store.models.blob import IntakeBlob
from intake_store.repository import BlobRepository

__all__ = [
    "BlobRepository",
    "DatabaseSettings",
    "IntakeBlob",
    "IntakeStore",
    "check_connection",
    "dispose_engine",
    "get_engine",
    "get_session_factory",
    "load_database_settings",
]
