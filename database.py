"""
MongoDB access

`db` is the shared database handle, or None when DATABASE_URL / DATABASE_NAME
are not set. Collection names are the lowercase schema names ("user",
"product", "category", "order").
"""
import logging
import os
from datetime import datetime, timezone
from typing import Optional, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import MongoClient

from errors import InternalError, ValidationError

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

db = None
if DATABASE_URL and DATABASE_NAME:
    _client = MongoClient(DATABASE_URL)
    db = _client[DATABASE_NAME]
    logger.info("MongoDB connected: %s", DATABASE_NAME)


def create_document(collection_name: str, data: Union[BaseModel, dict]) -> str:
    if db is None:
        raise InternalError("Database not configured")
    doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    now = datetime.now(timezone.utc)
    doc.setdefault("created_at", now)
    doc["updated_at"] = now
    return str(db[collection_name].insert_one(doc).inserted_id)


def get_documents(collection_name: str, filter_dict: Optional[dict] = None, limit: Optional[int] = None) -> list:
    if db is None:
        raise InternalError("Database not configured")
    cursor = db[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def to_object_id(id_str) -> ObjectId:
    if isinstance(id_str, ObjectId):
        return id_str
    if not isinstance(id_str, str) or not ObjectId.is_valid(id_str):
        raise ValidationError(f"Invalid id format: {id_str}")
    return ObjectId(id_str)


def doc_to_json(doc):
    """Make a stored document JSON-safe: ObjectIds and datetimes become
    strings and every `_id` key is renamed to `id`."""
    if isinstance(doc, list):
        return [doc_to_json(x) for x in doc]
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, datetime):
        return doc.isoformat()
    if not isinstance(doc, dict):
        return doc
    out = {}
    for k, v in doc.items():
        out["id" if k == "_id" else k] = doc_to_json(v)
    return out
