"""Shared fixtures: throwaway SQLite databases and storage directories."""

import io
import os
import tempfile

# Settings are read at import time, so the environment must be prepared first
_TMP_ROOT = tempfile.mkdtemp(prefix="product-qr-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_ROOT, 'app.db')}"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["STORAGE_DIR"] = os.path.join(_TMP_ROOT, "storage")
os.environ["PUBLIC_BASE_URL"] = "http://testserver"

import pytest
from PIL import Image
from sqlalchemy.orm import sessionmaker

from database import Base, make_engine
import models.log  # noqa: F401
import models.product  # noqa: F401
from services.product_repository import ProductRepository
from services.product_service import ProductService
from utils.storage import AssetStore, LocalStorageClient

BASE_URL = "http://testserver"


@pytest.fixture
def png_bytes():
    """A 1x1 PNG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (1, 1), (255, 0, 0)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def engine(tmp_path):
    """Engine bound to a fresh SQLite file with all tables created."""
    engine = make_engine(f"sqlite:///{tmp_path / 'products.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def repository(db_session):
    return ProductRepository(db_session)


@pytest.fixture
def asset_store(tmp_path):
    return AssetStore(LocalStorageClient(tmp_path / "storage", BASE_URL))


@pytest.fixture
def service(repository, asset_store):
    return ProductService(repository, asset_store, BASE_URL)
