import mongomock
import pytest
from fastapi.testclient import TestClient

import database
from schemas import Product


@pytest.fixture(autouse=True)
def mock_mongo(monkeypatch):
    """Every MongoClient the app opens is an in-memory mongomock client."""
    monkeypatch.setattr(database, "MongoClient", mongomock.MongoClient)


@pytest.fixture()
def shop_db():
    db = mongomock.MongoClient()["bunny_shop_app"]
    database.ensure_indexes(db)
    return db


@pytest.fixture()
def admin_db():
    return mongomock.MongoClient()["appifyours"]


@pytest.fixture()
def client():
    from main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture()
def app_state(client):
    from main import app

    return app.state


@pytest.fixture()
def product_ids(shop_db):
    products = [
        Product(name="Linen Shirt", price=25.0, description="Breathable summer wear", category="Apparel"),
        Product(name="Coffee Mug", price=8.5, description="Ceramic mug with a T-SHIRT print", category="Kitchen"),
        Product(name="Sneakers", price=60.0, description="Everyday trainers", category="Shirts & Shoes"),
        Product(name="Wool Shirt", price=40.0, description="Winter", category="Apparel", in_stock=False),
        Product(name="Desk Lamp", price=19.99, description="LED", category="Home"),
    ]
    return [database.create_document(shop_db, "product", p) for p in products]
