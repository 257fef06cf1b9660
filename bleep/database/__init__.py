"""Database package."""

from .db import configure_engine, get_session, init_db
from .models import CompletionRecord, StoredValue
from .store import SqlPersistence

__all__ = [
    "configure_engine",
    "get_session",
    "init_db",
    "CompletionRecord",
    "StoredValue",
    "SqlPersistence",
]
