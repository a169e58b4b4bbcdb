# backend/catalog_service/tests/conftest.py

import logging
import os
import shutil
import tempfile

# Must be set before the catalog package is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="catalog-storage-")

import pytest

from fastapi.testclient import TestClient

from catalog.config import STORAGE_ROOT
from catalog.db import Base, SessionLocal, engine, get_db
from catalog.main import app
from catalog.storage import LocalBlobStore, get_blob_store

from helpers import make_image

# Suppress noisy logs from SQLAlchemy/FastAPI during tests for cleaner output
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("fastapi").setLevel(logging.WARNING)
logging.getLogger("catalog").setLevel(logging.WARNING)


@pytest.fixture(scope="function")
def db_session_for_test():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture(scope="function")
def blob_store():
    # Same root the /storage mount serves, so stored images are reachable over HTTP
    store = LocalBlobStore(STORAGE_ROOT)
    app.dependency_overrides[get_blob_store] = lambda: store
    try:
        yield store
    finally:
        app.dependency_overrides.pop(get_blob_store, None)
        shutil.rmtree(store.directory, ignore_errors=True)


@pytest.fixture(scope="function")
def client(db_session_for_test, blob_store):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def png_bytes():
    return make_image("PNG")


@pytest.fixture
def jpeg_bytes():
    return make_image("JPEG")
