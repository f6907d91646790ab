from datetime import datetime, timezone

import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

import database
import main


@pytest.fixture
def mongo(monkeypatch):
    test_db = mongomock.MongoClient()["sneakpeak_test"]
    monkeypatch.setattr(database, "db", test_db)
    monkeypatch.setattr(main, "db", test_db)
    return test_db


@pytest.fixture
def make_user(mongo):
    def _make(name="Jane Doe", email=None, role="user"):
        user_id = mongo["user"].insert_one({
            "name": name,
            "email": email or f"{name.split()[0].lower()}@example.com",
            "password_hash": "x",
            "role": role,
            "is_active": True,
            "created_at": datetime.now(timezone.utc),
        }).inserted_id
        return main.UserOut(id=str(user_id), name=name, email=email or f"{name.split()[0].lower()}@example.com", role=role)
    return _make


@pytest.fixture
def make_product(mongo):
    def _make(name="Runner", price=50.0, stock=10, category=None, **extra):
        doc = {
            "name": name,
            "price": price,
            "stock": stock,
            "category": category,
            "images": ["products/runner.jpg"],
            "reviews": [],
            "ratings": 0.0,
            "num_of_reviews": 0,
            "revision": 0,
            **extra,
        }
        return mongo["product"].insert_one(doc).inserted_id
    return _make


@pytest.fixture
def make_order(mongo):
    def _make(user_id=None, items=(), items_price=None, total_price=None, paid_at=None, **extra):
        items = [dict(i) for i in items]
        if items_price is None:
            items_price = sum(i["price"] * i["quantity"] for i in items)
        doc = {
            "user_id": user_id,
            "order_items": items,
            "items_price": items_price,
            "tax_price": 0.0,
            "shipping_price": 0.0,
            "total_price": items_price if total_price is None else total_price,
            "order_status": "Processing",
            "paid_at": paid_at or datetime(2024, 1, 15),
            "created_at": paid_at or datetime(2024, 1, 15),
            **extra,
        }
        return mongo["order"].insert_one(doc).inserted_id
    return _make


@pytest.fixture
def client(mongo):
    with TestClient(main.app) as c:
        yield c
    main.app.dependency_overrides.clear()


@pytest.fixture
def login_as(client):
    def _login(user):
        main.app.dependency_overrides[main.get_current_user] = lambda: user
        return client
    return _login


def item(product_id, name, price, quantity):
    return {"product": str(product_id), "name": name, "price": price, "quantity": quantity}


@pytest.fixture
def line_item():
    return item


@pytest.fixture
def new_id():
    return lambda: str(ObjectId())
