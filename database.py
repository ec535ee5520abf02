"""
MongoDB access helpers.

Collections are named after the lowercase model name (Product -> "product").
Documents are stored with the same camelCase keys the API speaks.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from config import settings

logger = logging.getLogger(__name__)

client: MongoClient = MongoClient(settings.database_url, tz_aware=True)
db: Database = client[settings.database_name]

# (collection, field) pairs that must be unique
UNIQUE_FIELDS = [
    ("user", "email"),
    ("product", "sku"),
    ("order", "orderNumber"),
    ("employee", "employeeId"),
    ("employee", "email"),
]


def get_db() -> Database:
    return db


def ensure_indexes(database: Database) -> None:
    for collection, fieldname in UNIQUE_FIELDS:
        database[collection].create_index([(fieldname, ASCENDING)], unique=True)
    database["orderitem"].create_index([("orderId", ASCENDING)])
    logger.info(f"Indexes ensured on database '{database.name}'")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def oid(value: Optional[str]) -> Optional[ObjectId]:
    if value is None:
        return None
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def to_str_id(doc: Dict[str, Any]) -> Dict[str, Any]:
    if not doc:
        return doc
    d = {**doc}
    if "_id" in d:
        d["id"] = str(d.pop("_id"))
    # normalize ObjectId refs to string
    for k, v in list(d.items()):
        if isinstance(v, ObjectId):
            d[k] = str(v)
    return d


def create_document(database: Database, collection_name: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Insert a document with timestamps and return it as stored."""
    now = utcnow()
    doc = {**data, "createdAt": now, "updatedAt": now}
    res = database[collection_name].insert_one(doc)
    doc["_id"] = res.inserted_id
    return doc


def get_documents(
    database: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort_field: str = "createdAt",
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    cursor = database[collection_name].find(filter_dict or {}).sort([(sort_field, -1), ("_id", -1)])
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)
