"""
FastAPI application factory: wires the product store, image store, routers and
the static mount for uploaded images.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from src.api.products_router import api as products_api
from src.catalog.products_controller import ProductsController
from src.catalog.upload_handler import UploadHandler
from src.storage.image_store import ImageStore
from src.utils.catalog_config_loader import CatalogConfig, load_catalog_config

logger = logging.getLogger(__name__)


def build_product_store(cfg: CatalogConfig):
    """SQLAlchemy store when a database URL is configured, else the in-memory stub."""
    if cfg.database.url:
        from src.database.products_real import ProductStore

        store = ProductStore(connection_string=cfg.database.url)
    else:
        from src.database.products import ProductStore

        logger.warning("No database URL configured; products are kept in memory")
        store = ProductStore()
    store.create_tables()
    return store


def build_image_store(cfg: CatalogConfig) -> ImageStore:
    return ImageStore(
        root=Path(cfg.storage.upload_dir),
        pending_root=Path(cfg.storage.pending_dir),
        pending_grace_seconds=cfg.storage.pending_grace_seconds,
    )


def create_app(
    cfg: Optional[CatalogConfig] = None,
    store=None,
    image_store: Optional[ImageStore] = None,
) -> FastAPI:
    cfg = cfg or load_catalog_config()
    store = store if store is not None else build_product_store(cfg)
    images = image_store or build_image_store(cfg)

    app = FastAPI(
        title="Product Catalog API",
        description="Product records with uploaded images: create, list, edit, delete and download",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "ETag"],
    )

    app.state.settings = cfg
    app.state.product_store = store
    app.state.image_store = images
    app.state.products_controller = ProductsController(store, images)
    app.state.upload_handler = UploadHandler(store, images)

    if cfg.storage.reconcile_on_startup:
        app.state.products_controller.reconcile_images(remove_orphans=cfg.storage.remove_orphans)

    @app.get("/", tags=["Health"])
    async def root():
        return {"service": "Product Catalog API", "status": "healthy", "version": "1.0.0", "timestamp": datetime.now().isoformat()}

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check (product store, image directory)."""
        return {
            "status": "healthy",
            "database": {"products": "connected" if store.ping() else "unavailable"},
            "storage": {"upload_dir": str(images.root), "writable": images.root.is_dir()},
            "timestamp": datetime.now().isoformat(),
        }

    app.include_router(products_api, prefix="/api")
    app.mount(cfg.storage.static_prefix, StaticFiles(directory=str(images.root)), name="uploads")

    logger.info("Catalog API ready (uploads=%s, static=%s)", images.root, cfg.storage.static_prefix)
    return app
