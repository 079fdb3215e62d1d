"""Record store encapsulating database operations.

One `RecordStore` is bound to a single record kind (`User` or `Course`)
and to the collection configured for it. Stores return Pydantic models,
never raw documents, and hold no state between calls: each operation is
one round-trip to MongoDB.
"""

import logging
from collections.abc import Mapping
from contextlib import contextmanager
from typing import Generic, List, Optional, Type, TypeVar

from bson import ObjectId
from pydantic import ValidationError
from pymongo.database import Database
from pymongo.errors import CollectionInvalid, PyMongoError

from .config import Settings, settings as default_settings
from .models import RECORD_KINDS, Record

logger = logging.getLogger("ishariu.store")

T = TypeVar("T", bound=Record)

FILTER_LIMIT = 10


class StoreError(RuntimeError):
    """A database or serialization failure surfaced by `RecordStore`."""


@contextmanager
def _store_errors(action: str, collection: str):
    try:
        yield
    except (PyMongoError, ValidationError) as exc:
        logger.exception("store_failed action=%s collection=%s", action, collection)
        raise StoreError(f"{action} on {collection!r} failed: {exc}") from exc


def ensure_collection(database: Database, name: str) -> bool:
    """Create collection `name` if it does not exist yet.

    Returns True when the collection was created by this call. A collection
    created concurrently by another process between the existence check and
    the create is treated as already present.
    """
    if name in database.list_collection_names():
        return False
    try:
        database.create_collection(name)
    except CollectionInvalid:
        return False
    logger.info("collection_created name=%s database=%s", name, database.name)
    return True


class RecordStore(Generic[T]):
    """CRUD and query operations for one record kind.

    Construction resolves the bound collection from the kind's
    `collection_key` and provisions every collection the application
    expects (users and courses), whatever kind this store is bound to.
    """

    def __init__(self, database: Database, kind: Type[T], settings: Settings = default_settings):
        if kind not in RECORD_KINDS:
            raise TypeError(f"{kind!r} is not a storable record kind")
        self.kind = kind
        self.database = database
        self.collection_name = settings.collection_name(kind.collection_key)
        self.collection = database[self.collection_name]
        self.provision(settings.collection_names())

    def provision(self, names) -> List[str]:
        """Ensure each collection in `names` exists; return those created."""
        with _store_errors("provision", self.collection_name):
            return [name for name in names if ensure_collection(self.database, name)]

    def _load(self, doc: dict) -> T:
        return self.kind.model_validate(doc)

    def _check_kind(self, record: Record):
        if not isinstance(record, self.kind):
            raise TypeError(f"expected {self.kind.__name__}, got {type(record).__name__}")

    def fetch_all(self) -> List[T]:
        """Return every record in the collection, in natural order."""
        with _store_errors("fetch_all", self.collection_name):
            return [self._load(doc) for doc in self.collection.find({})]

    def fetch_by_id(self, record_id: str) -> Optional[T]:
        """Return the record with `record_id` or `None` if not found."""
        with _store_errors("fetch_by_id", self.collection_name):
            doc = self.collection.find_one({"_id": record_id})
            return self._load(doc) if doc is not None else None

    def fetch_by_filter(self, query: Mapping) -> List[T]:
        """Return up to `FILTER_LIMIT` records matching a MongoDB filter."""
        if not isinstance(query, Mapping):
            raise StoreError(f"filter must be a mapping, got {type(query).__name__}")
        with _store_errors("fetch_by_filter", self.collection_name):
            cursor = self.collection.find(dict(query)).limit(FILTER_LIMIT)
            return [self._load(doc) for doc in cursor]

    def insert(self, record: T) -> str:
        """Persist `record` as a new document and return its identifier.

        An empty identifier is replaced with a freshly generated ObjectId
        string, assigned on `record` itself before the write.
        """
        self._check_kind(record)
        if not record.id:
            record.id = str(ObjectId())
        with _store_errors("insert", self.collection_name):
            self.collection.insert_one(record.to_document())
        return record.id

    def replace(self, record: T) -> int:
        """Replace the stored document with the same identifier.

        Returns the matched count. Zero means no document had that
        identifier and nothing was written; this is not an error.
        """
        self._check_kind(record)
        with _store_errors("replace", self.collection_name):
            result = self.collection.replace_one({"_id": record.id}, record.to_document())
        if not result.matched_count:
            logger.info("replace_noop collection=%s id=%s", self.collection_name, record.id)
        return result.matched_count

    def delete_by_id(self, record_id: str) -> int:
        """Delete the document with `record_id`; return the deleted count (0 or 1)."""
        with _store_errors("delete_by_id", self.collection_name):
            return self.collection.delete_one({"_id": record_id}).deleted_count

    def fetch_top_ranked(self) -> List[T]:
        """Return the best-ranked records for kinds that declare a ranking.

        Only `Course` declares one: records sorted by `revenue_generated`
        descending, capped at 3. For a kind with no ranking (e.g. `User`)
        this deliberately returns the same as `fetch_all`: no sort and no
        cap.
        """
        if self.kind.ranking is None:
            return self.fetch_all()
        field, direction = self.kind.ranking
        with _store_errors("fetch_top_ranked", self.collection_name):
            cursor = self.collection.find({}).sort(field, direction)
            if self.kind.ranking_limit:
                cursor = cursor.limit(self.kind.ranking_limit)
            return [self._load(doc) for doc in cursor]
