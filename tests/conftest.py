import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("API_RATE_LIMIT", "10000")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from database import Database, get_db
from main import app
from schemas import Product
from storefront.storage import MemoryStorage


@pytest.fixture
def database():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db = Database(engine)
    db.create_schema()
    yield db
    db.dispose()


@pytest.fixture
def client(database):
    app.dependency_overrides[get_db] = lambda: database
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def headphones():
    return Product(id=1, name="Premium Headphones", description="Wireless", price=299.99,
                   category="Electronics", stock=50, rating=4.5)


@pytest.fixture
def mouse():
    return Product(id=4, name="Wireless Mouse", description="Ergonomic", price=29.99,
                   category="Accessories", stock=75, rating=4.4)
