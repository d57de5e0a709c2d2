"""
Form and list state for the product catalog client.

Holds the form fields, the create/edit mode, and the fetched product list,
and turns user actions (submit, edit, delete, download) into API calls.
Request failures are logged and leave the state as it was.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from src.client.api_client import ProductApiClient
from src.client.cache import ProductListCache
from src.utils.catalog_config_loader import ClientConfig

logger = logging.getLogger(__name__)

FORM_FIELDS = ("name", "description", "price")


@dataclass
class ProductForm:
    name: str = ""
    description: str = ""
    price: str = ""
    image: Optional[Path] = None


class ProductFormController:
    def __init__(self, api: ProductApiClient, cache: Optional[ProductListCache] = None):
        self.api = api
        self.cache = cache
        self.form = ProductForm()
        self.products: List[Dict[str, Any]] = []
        self.is_editing = False
        self.editing_product_id: Optional[str] = None

    @classmethod
    def from_config(cls, cfg: ClientConfig, transport: Optional[httpx.AsyncBaseTransport] = None) -> "ProductFormController":
        api = ProductApiClient(base_url=cfg.base_url, timeout_seconds=cfg.timeout_seconds, transport=transport)
        cache = ProductListCache(Path(cfg.cache_path), ttl_seconds=cfg.cache_ttl_seconds)
        return cls(api, cache)

    # --- Form state -----------------------------------------------------------

    def set_field(self, name: str, value: Any) -> None:
        if name not in FORM_FIELDS:
            raise ValueError(f"Unknown form field: {name}")
        setattr(self.form, name, "" if value is None else str(value))

    def select_image(self, path: Optional[Path]) -> None:
        self.form.image = Path(path) if path else None

    def reset_form(self) -> None:
        self.form = ProductForm()
        self.is_editing = False
        self.editing_product_id = None

    def start_edit(self, product_id: str) -> bool:
        product = next((p for p in self.products if p.get("_id") == product_id), None)
        if product is None:
            logger.warning("Cannot edit unknown product %s", product_id)
            return False
        price = product.get("price")
        self.form = ProductForm(
            name=product.get("name") or "",
            description=product.get("description") or "",
            price="" if price is None else str(price),
        )
        self.is_editing = True
        self.editing_product_id = product_id
        return True

    # --- List -----------------------------------------------------------------

    async def load(self, force: bool = False) -> List[Dict[str, Any]]:
        """
        Cache-aside list read: a fresh cache entry is used without a request,
        a stale one is revalidated with its ETag, anything else is fetched.
        """
        entry = self.cache.get() if self.cache else None
        if entry and not force and self.cache.is_fresh(entry):
            self.products = list(entry["products"])
            return self.products

        try:
            result = await self.api.list_products(etag=entry.get("etag") if entry else None)
        except httpx.HTTPError as e:
            logger.error("Error fetching products: %s", e)
            return self.products

        if result.not_modified and entry:
            self.cache.touch()
            self.products = list(entry["products"])
        else:
            self.products = list(result.products or [])
            if self.cache:
                self.cache.set(self.products, result.etag)
        return self.products

    def _invalidate_cache(self) -> None:
        if self.cache:
            self.cache.invalidate()

    # --- Actions --------------------------------------------------------------

    async def submit(self) -> bool:
        if self.is_editing:
            return await self._submit_update()
        try:
            await self.api.create_product(
                name=self.form.name,
                description=self.form.description,
                price=self.form.price,
                image=self.form.image,
            )
        except (httpx.HTTPError, OSError) as e:
            logger.error("Error uploading product: %s", e)
            return False
        logger.info("Product uploaded successfully")
        self.reset_form()
        # The create response carries no identifier; the list is the only source of it.
        await self.load(force=True)
        return True

    async def _submit_update(self) -> bool:
        product_id = self.editing_product_id
        fields = {"name": self.form.name, "description": self.form.description, "price": self.form.price}
        try:
            updated = await self.api.update_product(product_id, fields)
        except httpx.HTTPError as e:
            logger.error("Error updating product: %s", e)
            return False
        self.products = [updated if p.get("_id") == product_id else p for p in self.products]
        self._invalidate_cache()
        logger.info("Product updated successfully")
        self.reset_form()
        return True

    async def delete(self, product_id: str) -> bool:
        try:
            await self.api.delete_product(product_id)
        except httpx.HTTPError as e:
            logger.error("Error deleting product: %s", e)
            return False
        self.products = [p for p in self.products if p.get("_id") != product_id]
        self._invalidate_cache()
        logger.info("Product deleted successfully")
        return True

    async def download(self, product_id: str, directory: Path) -> Optional[Path]:
        try:
            filename, data = await self.api.download_product(product_id)
        except httpx.HTTPError as e:
            logger.error("Error downloading product: %s", e)
            return None
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        target = directory / filename
        target.write_bytes(data)
        logger.info("Download successful: %s", target)
        return target
