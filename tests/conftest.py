from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from app.classification.taxonomy import load_taxonomy
from app.core.security import hash_password
from app.main import app
from app.models.user import User

MASTER_TABLE = Path(__file__).resolve().parent.parent / "app" / "data" / "master_table.json"


def make_collection():
    collection = MagicMock()
    collection.find_one = AsyncMock(return_value=None)
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id=ObjectId()))
    collection.update_one = AsyncMock(return_value=MagicMock(modified_count=1))
    collection.create_index = AsyncMock()
    return collection


def make_cursor(docs):
    """Motor-style cursor: find(...).sort(...).to_list(n)."""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.to_list = AsyncMock(return_value=list(docs))
    return cursor


@pytest.fixture
def mock_db():
    """Mock MongoDB database; db["name"] and db.name return the same collection."""
    db = MagicMock()
    for name in ("users", "receipts", "promotions", "promotion_redemptions"):
        setattr(db, name, make_collection())
    db.__getitem__.side_effect = lambda name: getattr(db, name)
    return db


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def user():
    return User(
        id=ObjectId("507f1f77bcf86cd799439011"),
        first_name="Lucia",
        last_name="Quispe",
        email="lucia@example.com",
        hashed_password=hash_password("SecurePassword123"),
        green_points=4,
    )


@pytest.fixture(scope="session")
def taxonomy():
    return load_taxonomy(MASTER_TABLE)


@pytest.fixture
def embeddings():
    service = MagicMock()
    service.embed_product = AsyncMock(return_value=[0.1, 0.2, 0.3])
    return service


@pytest.fixture
def vectors():
    gateway = MagicMock()
    gateway.collection_exists = AsyncMock(return_value=True)
    gateway.search = AsyncMock(return_value=[])
    return gateway


@pytest.fixture
def chat():
    gateway = MagicMock()
    gateway.complete = AsyncMock(return_value="{}")
    return gateway


@pytest.fixture
def cursor():
    """Factory for motor-style cursors over fixed documents."""
    return make_cursor
