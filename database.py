"""
MongoDB helpers

Connection settings come from the environment. The app opens both clients
once at startup (see `lifespan` in main.py) and closes them at shutdown;
handlers receive the `Database` objects through FastAPI dependencies.

- DATABASE_URL / DATABASE_NAME -> shop database (product, user)
- MAIN_DB_URI -> admin database holding the adminElementScreens collection
"""

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

import structlog
from bson import ObjectId
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.database import Database

logger = structlog.get_logger(__name__)

logging.getLogger("pymongo").setLevel(logging.WARNING)

DEFAULT_DATABASE_URL = "mongodb://localhost:27017"
DEFAULT_DATABASE_NAME = "bunny_shop_app"
DEFAULT_ADMIN_DB_URI = "mongodb://localhost:27017/appifyours"
DEFAULT_ADMIN_DB_NAME = "appifyours"
DEFAULT_ADMIN_ID = "69021d2a2b0d7cd49d0bf5b4"

ADMIN_COLLECTION = "adminElementScreens"


def admin_id() -> str:
    return os.getenv("ADMIN_ID", DEFAULT_ADMIN_ID)


def connect() -> MongoClient:
    return MongoClient(os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL))


def connect_admin() -> MongoClient:
    return MongoClient(os.getenv("MAIN_DB_URI", DEFAULT_ADMIN_DB_URI))


def shop_database(client: MongoClient) -> Database:
    return client[os.getenv("DATABASE_NAME", DEFAULT_DATABASE_NAME)]


def admin_database(client: MongoClient) -> Database:
    # Database name comes from the URI path, e.g. mongodb://host/appifyours
    return client.get_default_database(DEFAULT_ADMIN_DB_NAME)


def ensure_indexes(db: Database) -> None:
    db["user"].create_index("email", unique=True)
    logger.info("Indexes ensured", database=db.name, collection="user")


def create_document(db: Database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    """Insert a document with a createdAt timestamp and return its id as a string"""
    if isinstance(data, BaseModel):
        doc = data.model_dump(by_alias=True)
    else:
        doc = dict(data)
    doc.setdefault("createdAt", datetime.now(timezone.utc))
    result = db[collection_name].insert_one(doc)
    return str(result.inserted_id)


def get_documents(db: Database, collection_name: str, filter_dict: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    return list(db[collection_name].find(filter_dict or {}))


def to_json(value: Any) -> Any:
    """Recursively convert ObjectIds and datetimes into JSON-safe values"""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_json(v) for v in value]
    return value


def to_str_id(doc: Dict[str, Any]) -> Dict[str, Any]:
    if not doc:
        return doc
    d = dict(doc)
    if d.get("_id") is not None:
        d["id"] = str(d.pop("_id"))
    return to_json(d)
