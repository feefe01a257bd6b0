# tests/conftest.py
import os

# Settings are read at import time; configure before importing the app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["SUPABASE_URL"] = "https://proj.supabase.co"
os.environ["MEDIA_BASE_URL"] = "https://proj.supabase.co/storage/v1/object/public/assets"
os.environ["ENVIRONMENT"] = "test"
os.environ.pop("REDIS_URL", None)

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session

from justgold.core.auth import create_access_token, hash_password
from justgold.core.cache import get_cache
from justgold.core.storage_utils import get_media_store
from justgold.database import engine
from justgold.main import app
from justgold.models.category import Category
from justgold.models.product import Product, ProductVariant
from justgold.models.user import User

from tests.mocks.mock_cache import MockCache
from tests.mocks.mock_storage import MockBucket, make_media_store


@pytest.fixture(autouse=True)
def db_tables():
    """Fresh schema for every test (in-memory SQLite shared via StaticPool)."""
    SQLModel.metadata.create_all(engine)
    yield
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session():
    with Session(engine) as s:
        yield s


@pytest.fixture
def bucket():
    return MockBucket()


@pytest.fixture
def media_store(bucket):
    return make_media_store(bucket)


@pytest.fixture
def cache():
    return MockCache()


@pytest.fixture
def client(media_store, cache):
    """TestClient with storage and cache replaced by in-memory doubles."""
    app.dependency_overrides[get_media_store] = lambda: media_store
    app.dependency_overrides[get_cache] = lambda: cache
    yield TestClient(app)
    app.dependency_overrides.clear()


def _make_user(session: Session, email: str, role: str) -> User:
    user = User(
        name=email.split("@")[0],
        email=email,
        password_hash=hash_password("secret123"),
        role=role,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def admin_user(session):
    return _make_user(session, "admin@justgold.com", "admin")


@pytest.fixture
def customer(session):
    return _make_user(session, "jane@justgold.com", "user")


@pytest.fixture
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {create_access_token(admin_user)}"}


@pytest.fixture
def customer_headers(customer):
    return {"Authorization": f"Bearer {create_access_token(customer)}"}


@pytest.fixture
def categories(session):
    """LIPS (parent) with Lipstick and Lip Gloss; FACE (parent) with Foundation."""
    lips = Category(name="LIPS", slug="lips")
    face = Category(name="FACE", slug="face")
    session.add(lips)
    session.add(face)
    session.commit()
    session.refresh(lips)
    session.refresh(face)

    lipstick = Category(name="Lipstick", slug="lipstick", parent_id=lips.id)
    gloss = Category(name="Lip Gloss", slug="lip-gloss", parent_id=lips.id)
    foundation = Category(name="Foundation", slug="foundation", parent_id=face.id)
    for row in (lipstick, gloss, foundation):
        session.add(row)
    session.commit()
    for row in (lipstick, gloss, foundation):
        session.refresh(row)

    return {
        "lips": lips,
        "face": face,
        "lipstick": lipstick,
        "gloss": gloss,
        "foundation": foundation,
    }


@pytest.fixture
def make_product(session):
    """
    Insert a product directly, with optional variants given as dicts of
    ProductVariant fields.
    """

    def _make(name: str, category_id: int, base_price: float = 1000, variants=None, **fields):
        product = Product(
            name=name,
            slug=name.lower().replace(" ", "-"),
            base_price=base_price,
            category_id=category_id,
            **fields,
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        for values in variants or []:
            values = {"color_panel_type": "hex", "color_panel_value": "#c0a060", **values}
            session.add(ProductVariant(product_id=product.id, **values))
        session.commit()
        return product

    return _make
