"""Pytest fixtures for the catalog API, stores and client."""

import pytest
from fastapi.testclient import TestClient

from src.api.app import create_app
from src.database.products import ProductStore
from src.storage.image_store import ImageStore
from src.utils.catalog_config_loader import CatalogConfig


@pytest.fixture
def catalog_cfg(tmp_path):
    """Config pointing every directory at tmp_path; no database URL (in-memory store)."""
    return CatalogConfig(
        storage={
            "upload_dir": str(tmp_path / "uploads"),
            "pending_dir": str(tmp_path / "uploads_pending"),
        },
        client={
            "base_url": "http://testserver",
            "cache_path": str(tmp_path / "cache" / "products.json"),
            "download_dir": str(tmp_path / "downloads"),
        },
    )


@pytest.fixture
def images(catalog_cfg):
    return ImageStore(
        root=catalog_cfg.storage.upload_dir,
        pending_root=catalog_cfg.storage.pending_dir,
        pending_grace_seconds=catalog_cfg.storage.pending_grace_seconds,
    )


@pytest.fixture
def db():
    """In-memory ProductStore stub for tests."""
    return ProductStore()


@pytest.fixture
def sqlite_db(tmp_path):
    from src.database.products_real import ProductStore as RealProductStore

    store = RealProductStore(connection_string=f"sqlite:///{tmp_path / 'catalog.db'}")
    store.create_tables()
    return store


@pytest.fixture
def app(catalog_cfg, db, images):
    return create_app(catalog_cfg, store=db, image_store=images)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def jpeg_bytes():
    return b"\xff\xd8\xff\xe0" + b"catalog-image" * 16 + b"\xff\xd9"


@pytest.fixture
def create_product(client, jpeg_bytes):
    """Upload a product through the API and return its listed record."""

    def _create(name="Chair", description="Oak chair", price="49.5", filename="chair.jpg", data=None):
        res = client.post(
            "/api/products",
            data={"name": name, "description": description, "price": price},
            files={"image": (filename, data if data is not None else jpeg_bytes, "image/jpeg")},
        )
        assert res.status_code == 201, res.text
        products = client.get("/api/products").json()
        return products[-1]

    return _create
