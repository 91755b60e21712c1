"""
Database Schemas

Pydantic models for the shop's MongoDB documents and request bodies.
Collection names are the lowercase model name:
- Product -> "product" collection
- User -> "user" collection (cart and orders are embedded arrays)

Documents are stored with the camelCase keys of the JSON API, so every model
uses camelCase aliases: build with either name, dump with `by_alias=True`.

The admin configuration lives in another database and is not owned by this
service. `AdminConfig` parses it leniently and resolves defaults for any
missing field.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Product(CamelModel):
    """
    Products collection schema
    Collection name: "product"
    """
    name: str = Field(..., description="Product name")
    price: float = Field(..., description="Unit price")
    description: Optional[str] = Field(None, description="Product description")
    image: Optional[str] = Field(None, description="Image URL")
    category: Optional[str] = Field(None, description="Product category")
    in_stock: bool = Field(True, description="Whether product is in stock")
    created_at: datetime = Field(default_factory=utcnow)


class Address(CamelModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None


class CartLine(CamelModel):
    product_id: str
    name: Optional[str] = None
    price: float = 0
    quantity: Union[int, float] = 1
    added_at: datetime = Field(default_factory=utcnow)


class OrderLine(CamelModel):
    """Product snapshot copied from the cart when the order is placed"""
    product_id: str
    name: Optional[str] = None
    price: float = 0
    quantity: Union[int, float] = 1


class Order(CamelModel):
    order_id: str
    products: List[OrderLine] = Field(default_factory=list)
    total: float = 0
    status: str = "pending"
    created_at: datetime = Field(default_factory=utcnow)


class User(CamelModel):
    """
    Users collection schema
    Collection name: "user"
    """
    name: str = Field(..., description="Full name")
    email: str = Field(..., description="Email address, unique per user")
    phone: Optional[str] = Field(None, description="Phone number")
    address: Optional[Address] = None
    cart: List[CartLine] = Field(default_factory=list)
    orders: List[Order] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)


# Request bodies

class RegisterRequest(CamelModel):
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[Address] = None


class AddToCartRequest(CamelModel):
    product_id: str
    name: Optional[str] = None
    price: float = 0
    quantity: Union[int, float] = 1


# Admin configuration (external, read-only)

_NUMBER_PREFIX = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def parse_price(value: Any) -> Optional[float]:
    """Leading-number float parse: "5.5" -> 5.5, "12.5 USD" -> 12.5, "n/a" -> None"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _NUMBER_PREFIX.match(str(value))
    if not match:
        return None
    return float(match.group(0))


def first_price(*candidates: Any) -> float:
    for candidate in candidates:
        if not candidate:
            continue
        parsed = parse_price(candidate)
        if parsed is not None:
            return parsed
    return 0


class ProductCard(CamelModel):
    """A product card from the admin's dynamic fields. Any shape is accepted."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: Any = None
    product_name: Any = None
    name: Any = None
    price: Any = None
    discount_price: Any = None
    description: Any = None
    image: Any = None
    category: Any = None

    def to_product(self, index: int) -> Dict[str, Any]:
        name = self.product_name or self.name or "Unknown Product"
        normalized = {
            "id": self.id or f"product_{index}",
            "name": name,
            "price": first_price(self.price, self.discount_price),
            "description": self.description or "",
            "image": self.image or "",
            "category": self.category or "General",
            "inStock": True,
            "productName": name,
            "discountPrice": first_price(self.discount_price, self.price),
        }
        return {**(self.model_extra or {}), **normalized}


class Theme(CamelModel):
    primary_color: str = "#2196F3"
    secondary_color: str = "#FF9800"
    background_color: str = "#FFFFFF"
    text_color: str = "#000000"


class DesignSettings(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    theme: Any = None


class DynamicFields(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    store_info: Any = None
    gst_number: Any = None
    product_cards: Optional[List[Any]] = None


class AdminConfig(CamelModel):
    """
    Admin element screen document (adminElementScreens collection)

    Empty values fall back to the same defaults as missing ones.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    user_id: Optional[str] = None
    shop_name: Any = None
    app_name: Any = None
    updated_at: Any = None
    design_settings: Optional[DesignSettings] = None
    dynamic_fields: Optional[DynamicFields] = None

    @field_validator("design_settings", "dynamic_fields", mode="before")
    @classmethod
    def _ignore_non_objects(cls, value: Any) -> Any:
        # A scalar or list here has no nested fields to read
        return value if isinstance(value, dict) else None

    @property
    def resolved_shop_name(self) -> str:
        return self.shop_name or "Bunny Shop"

    @property
    def resolved_app_name(self) -> str:
        return self.app_name or "Bunny Shop"

    @property
    def theme(self) -> Any:
        if self.design_settings and self.design_settings.theme:
            return self.design_settings.theme
        return Theme().model_dump(by_alias=True)

    @property
    def store_info(self) -> Any:
        if self.dynamic_fields and self.dynamic_fields.store_info:
            return self.dynamic_fields.store_info
        return {}

    @property
    def gst_number(self) -> Any:
        if self.dynamic_fields and self.dynamic_fields.gst_number:
            return self.dynamic_fields.gst_number
        return "18"

    @property
    def product_cards(self) -> List[ProductCard]:
        if self.dynamic_fields and self.dynamic_fields.product_cards:
            return [
                ProductCard.model_validate(card) if isinstance(card, dict) else ProductCard()
                for card in self.dynamic_fields.product_cards
            ]
        return []


class Features(CamelModel):
    search_enabled: bool = True
    cart_enabled: bool = True
    user_registration_enabled: bool = True
    order_tracking_enabled: bool = True
    wishlist_enabled: bool = True


class AppConfig(CamelModel):
    admin_id: str
    shop_name: Any
    app_name: Any
    last_updated: Any
    features: Features = Field(default_factory=Features)
    theme: Any
    store_info: Any = Field(default_factory=dict)
    gst_number: Any = "18"
