"""MongoDB client and helpers.

This module owns the single `MongoClient` used by the application and
provides small helpers used by the application, scripts and tests. The
client is created lazily on first use and shared by every record store
for the lifetime of the process.
"""

from functools import lru_cache

from fastapi import Depends
from pymongo import MongoClient
from pymongo.database import Database

from .config import settings
from .models import Course, User
from .repositories import RecordStore


@lru_cache(maxsize=1)
def get_client() -> MongoClient:
    """Return the process-wide `MongoClient`.

    `MongoClient` is thread-safe and pools its own connections, so one
    instance is shared across requests.
    """
    return MongoClient(settings.MONGO_URL, serverSelectionTimeoutMS=settings.MONGO_TIMEOUT_MS)


def get_database() -> Database:
    """Return the configured `Database` for FastAPI dependency injection.

    Tests override this dependency to point the application at an
    in-memory database.
    """
    return get_client()[settings.MONGO_DB_NAME]


def close_client():
    """Close the shared client, if one was opened."""
    if get_client.cache_info().currsize:
        get_client().close()
        get_client.cache_clear()


def get_user_store(db: Database = Depends(get_database)) -> RecordStore:
    """Return a `RecordStore` bound to users for the current request."""
    return RecordStore(db, User)


def get_course_store(db: Database = Depends(get_database)) -> RecordStore:
    """Return a `RecordStore` bound to courses for the current request."""
    return RecordStore(db, Course)
