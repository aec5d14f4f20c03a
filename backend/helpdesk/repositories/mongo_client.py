"""
Shared pymongo client, document conversion and index setup.

The client is created lazily on first use so importing repositories never opens
a connection. It is tz-aware: every datetime read back is UTC-aware.
"""
import time
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar
from urllib.parse import urlsplit, urlunsplit

from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.client_session import ClientSession
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from ..config.settings import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_client: Optional[MongoClient] = None

# Department names are unique regardless of case
CASE_INSENSITIVE = {"locale": "en", "strength": 2}

CHILD_COLLECTIONS = ("ticket_comments", "ticket_attachments", "ticket_history")

# collection -> [(keys, options)]
INDEXES: Dict[str, List[Tuple[Any, Dict[str, Any]]]] = {
    "profiles": [
        ("id", {"unique": True}),
        ("department_id", {}),
        ("role", {}),
    ],
    "departments": [
        ("id", {"unique": True}),
        ("name", {"unique": True, "collation": CASE_INSENSITIVE}),
    ],
    "tickets": [
        ("id", {"unique": True}),
        ("ticket_number", {"unique": True}),
        ([("department_id", ASCENDING), ("status", ASCENDING)], {}),
        ("status", {}),
        ("priority", {}),
        ("created_by", {}),
        ("assigned_to", {}),
        ("created_at", {}),
        ("updated_at", {}),
    ],
    "sla_rules": [
        ("id", {"unique": True}),
        ([("department_id", ASCENDING), ("priority", ASCENDING)], {"unique": True}),
    ],
}
for _name in CHILD_COLLECTIONS:
    INDEXES[_name] = [
        ("id", {"unique": True}),
        ([("ticket_id", ASCENDING), ("created_at", DESCENDING)], {}),
    ]


def _redacted(uri: str) -> str:
    parts = urlsplit(uri)
    if parts.password:
        netloc = parts.netloc.replace(f":{parts.password}@", ":***@")
        return urlunsplit(parts._replace(netloc=netloc))
    return uri


def get_client() -> MongoClient:
    global _client
    if _client is None:
        logger.info(f"Opening MongoDB client for {_redacted(settings.mongo_uri)}")
        _client = MongoClient(
            settings.mongo_uri,
            tz_aware=True,
            serverSelectionTimeoutMS=settings.mongo_timeout_ms,
            connectTimeoutMS=settings.mongo_timeout_ms,
        )
    return _client


def get_database() -> Database:
    return get_client()[settings.mongo_db]


def get_collection(name: str) -> Collection:
    return get_database()[name]


def close_connection() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None
        logger.info("MongoDB client closed")


def to_document(model: BaseModel) -> Dict[str, Any]:
    """
    Storage form of a model: enums by value, datetimes left as datetimes so
    range queries and sorting work, and the entity id reused as ``_id``.
    """
    doc = {key: _plain(value) for key, value in model.model_dump().items()}
    if "id" in doc:
        doc["_id"] = doc["id"]
    return doc


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


def run_in_transaction(fn: Callable[[Optional[ClientSession]], T]) -> T:
    """
    Apply a group of writes.

    With ``MONGO_TRANSACTIONS=true`` (replica set required) they commit or roll
    back together. Otherwise ``fn`` gets ``None`` and the writes land one by one.
    """
    if not settings.mongo_transactions:
        return fn(None)
    with get_client().start_session() as session:
        return session.with_transaction(fn)


def create_indexes() -> None:
    db = get_database()
    for collection, specs in INDEXES.items():
        for keys, options in specs:
            db[collection].create_index(keys, **options)
    logger.info(f"Indexes ensured on {len(INDEXES)} collections", extra={"action": "create_indexes"})


def health_check() -> Dict[str, Any]:
    started = time.perf_counter()
    try:
        get_client().admin.command("ping")
    except PyMongoError as e:
        logger.error(f"MongoDB ping failed: {e}")
        return {"status": "unhealthy", "database": settings.mongo_db, "error": str(e)}
    return {
        "status": "healthy",
        "database": settings.mongo_db,
        "latency_ms": round((time.perf_counter() - started) * 1000, 1),
    }
