"""
User accounts with their embedded cart and order history.

Cart and orders live as arrays on the user document. Nothing here locks the
document: two concurrent cart updates for the same user can overwrite each
other (last write wins).
"""

import time
from typing import Any, Dict, List

import structlog
from bson import ObjectId
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import create_document, to_json, to_str_id
from errors import DuplicateUser, NotFound, storage_errors
from schemas import AddToCartRequest, CartLine, Order, OrderLine, RegisterRequest, User

logger = structlog.get_logger(__name__)


def epoch_millis() -> int:
    return int(time.time() * 1000)


def new_order_id() -> str:
    return f"ORDER_{epoch_millis()}"


def _find_user(db: Database, user_id: str) -> Dict[str, Any]:
    with storage_errors():
        user = db["user"].find_one({"_id": ObjectId(user_id)})
    if not user:
        raise NotFound("User not found")
    return user


def register(db: Database, payload: RegisterRequest) -> Dict[str, Any]:
    user = User(**payload.model_dump())
    with storage_errors():
        if db["user"].find_one({"email": payload.email}):
            raise DuplicateUser("User already exists")
        try:
            user_id = create_document(db, "user", user)
        except DuplicateKeyError:
            # Lost the race against another registration with the same email
            raise DuplicateUser("User already exists")
        created = db["user"].find_one({"_id": ObjectId(user_id)})
    logger.info("User registered", user_id=user_id)
    return to_str_id(created)


def get_user(db: Database, user_id: str) -> Dict[str, Any]:
    return to_str_id(_find_user(db, user_id))


def add_to_cart(db: Database, user_id: str, item: AddToCartRequest) -> List[Dict[str, Any]]:
    """Merge `item` into the user's cart by productId and return the whole cart"""
    user = _find_user(db, user_id)
    cart = user.get("cart") or []
    found = False
    for line in cart:
        if line.get("productId") == item.product_id:
            line["quantity"] = line.get("quantity", 0) + item.quantity
            found = True
            break
    if not found:
        cart.append(CartLine(**item.model_dump()).model_dump(by_alias=True))
    with storage_errors():
        db["user"].update_one({"_id": user["_id"]}, {"$set": {"cart": cart}})
    return to_json(cart)


def get_cart(db: Database, user_id: str) -> List[Dict[str, Any]]:
    user = _find_user(db, user_id)
    return to_json(user.get("cart") or [])


def place_order(db: Database, user_id: str) -> Dict[str, Any]:
    """
    Turn the current cart into an order.

    The cart lines are copied into the order as-is, so later price changes
    never touch the order total. An empty cart yields an order with total 0.
    The order is appended and the cart cleared in a single update.
    """
    user = _find_user(db, user_id)
    lines = [OrderLine.model_validate(line) for line in user.get("cart") or []]
    total = sum(line.price * line.quantity for line in lines)
    order = Order(order_id=new_order_id(), products=lines, total=total)
    doc = order.model_dump(by_alias=True)
    with storage_errors():
        db["user"].update_one(
            {"_id": user["_id"]},
            {"$push": {"orders": doc}, "$set": {"cart": []}},
        )
    logger.info("Order placed", user_id=user_id, order_id=order.order_id, total=total)
    return to_json(doc)


def get_orders(db: Database, user_id: str) -> List[Dict[str, Any]]:
    user = _find_user(db, user_id)
    return to_json(user.get("orders") or [])
