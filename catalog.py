"""
Catalog reads: shop products plus the admin-curated feed and app config.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List

import structlog
from bson import ObjectId
from pymongo.database import Database

from database import ADMIN_COLLECTION, get_documents, to_json, to_str_id
from errors import ConfigNotFound, NotFound, storage_errors
from schemas import AdminConfig, AppConfig

logger = structlog.get_logger(__name__)


def list_in_stock_products(db: Database) -> List[Dict[str, Any]]:
    with storage_errors():
        docs = get_documents(db, "product", {"inStock": True})
    return [to_str_id(d) for d in docs]


def get_product(db: Database, product_id: str) -> Dict[str, Any]:
    with storage_errors():
        doc = db["product"].find_one({"_id": ObjectId(product_id)})
    if not doc:
        raise NotFound("Product not found")
    return to_str_id(doc)


def search_products(db: Database, query: str) -> List[Dict[str, Any]]:
    """In-stock products whose name, description or category contains `query`, ignoring case"""
    pattern = {"$regex": re.escape(query), "$options": "i"}
    filt = {
        "inStock": True,
        "$or": [
            {"name": pattern},
            {"description": pattern},
            {"category": pattern},
        ],
    }
    with storage_errors():
        docs = get_documents(db, "product", filt)
    return [to_str_id(d) for d in docs]


def load_admin_config(admin_db: Database, admin_id: str) -> AdminConfig:
    with storage_errors():
        doc = admin_db[ADMIN_COLLECTION].find_one({"userId": admin_id})
    if not doc:
        logger.warning("Admin configuration missing", admin_id=admin_id)
        raise ConfigNotFound("Admin configuration not found")
    return AdminConfig.model_validate(doc)


def get_dynamic_product_feed(admin_db: Database, admin_id: str) -> List[Dict[str, Any]]:
    config = load_admin_config(admin_db, admin_id)
    return [to_json(card.to_product(i)) for i, card in enumerate(config.product_cards)]


def get_app_config(admin_db: Database, admin_id: str) -> Dict[str, Any]:
    config = load_admin_config(admin_db, admin_id)
    app_config = AppConfig(
        admin_id=admin_id,
        shop_name=config.resolved_shop_name,
        app_name=config.resolved_app_name,
        last_updated=config.updated_at or datetime.now(timezone.utc),
        theme=config.theme,
        store_info=config.store_info,
        gst_number=config.gst_number,
    )
    return to_json(app_config.model_dump(by_alias=True))
