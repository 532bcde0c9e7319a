import os
import tempfile

# Keep the app away from the real database and log folder
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="layers-logs-"))
os.environ.setdefault("SUPPORTED_CULTURES", "en-US,fr-FR")

import pytest
from typing import Generator
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db, get_current_admin
from app.config import settings
from app.core.memory_cache import memory_cache
from app.database import Base
from app.main import app
from app.models.content_item import ContentItem, LayerMetadata


# 1. SETUP TEST DATABASE
# SQLite in-memory with StaticPool so the data persists
# for the duration of a single test function.
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def clear_memory_cache():
    """The cache is process wide: never let a document leak between tests."""
    memory_cache.clear()
    yield
    memory_cache.clear()


# 2. DB SESSION FIXTURE
@pytest.fixture(scope="function")
def db():
    """
    Creates a fresh database for every single test case.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    yield session

    # Cleanup
    session.close()
    Base.metadata.drop_all(bind=engine)


# 3. CLIENT FIXTURE (Unauthenticated)
@pytest.fixture(scope="function")
def client(db) -> Generator:
    """
    Returns a TestClient with the database dependency overridden.
    """

    def override_get_db():
        # The 'db' fixture handles the teardown at the end of the test function.
        yield db

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        # Startup seeded the app's own database; tests start from an empty cache
        memory_cache.clear()
        yield c

    app.dependency_overrides.clear()


# 4. AUTHENTICATED CLIENT FIXTURE
@pytest.fixture(scope="function")
def admin_client(client):
    """
    Returns a client logged in as Admin.
    """
    app.dependency_overrides[get_current_admin] = lambda: {"sub": "admin", "role": "admin"}
    return client


@pytest.fixture
def make_token():
    def _make_token(sub: str, role: str) -> str:
        return jwt.encode({"sub": sub, "role": role}, settings.secret_key, algorithm=settings.algorithm)
    return _make_token


# 5. WIDGET FIXTURE
@pytest.fixture
def add_widget(db):
    """Stores a content item placed on a layer"""
    def _add_widget(content_item_id, zone, layer, position=0, culture=None,
                    published=True, latest=True, content_type="HtmlWidget", display_text=None):
        item = ContentItem(
            content_item_id=content_item_id,
            content_type=content_type,
            display_text=display_text or content_item_id,
            published=published,
            latest=latest,
            culture=culture,
        )
        item.layer_metadata = LayerMetadata(zone=zone, layer=layer, position=position)
        db.add(item)
        db.commit()
        return item
    return _add_widget
