"""
Lightweight in-memory product store for local development and tests.

Implements the same interface as src.database.products_real (SQLAlchemy) so
the API can run without a database. Data is lost when the process exits.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

PRODUCT_FIELDS = ("name", "description", "price", "imagePath")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Product:
    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    image_path: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


def product_to_dict(product: Any) -> Dict[str, Any]:
    """Wire shape shared by both store implementations."""
    return {
        "_id": product.id,
        "name": product.name,
        "description": product.description,
        "price": product.price,
        "imagePath": product.image_path,
    }


def _column_updates(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Map wire field names onto attribute names, dropping anything unknown."""
    out: Dict[str, Any] = {}
    for key, value in (fields or {}).items():
        if key == "imagePath":
            out["image_path"] = value
        elif key in PRODUCT_FIELDS:
            out[key] = value
    return out


class ProductStore:
    """
    In-memory stand-in for the product collection.

    Every operation runs under one lock, so concurrent updates to the same
    record are applied one after the other (last write wins).
    """

    def __init__(self) -> None:
        self._products: Dict[str, Product] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------ #
    # Schema / lifecycle
    # ------------------------------------------------------------------ #
    def create_tables(self) -> None:
        """No-op for the in-memory implementation."""
        return None

    def ping(self) -> bool:
        return True

    # ------------------------------------------------------------------ #
    # Products
    # ------------------------------------------------------------------ #
    def create_product(self, fields: Dict[str, Any]) -> Product:
        product = Product(id=str(uuid.uuid4()), **_column_updates(fields))
        with self._lock:
            self._products[product.id] = product
        return replace(product)

    def list_products(self) -> List[Product]:
        with self._lock:
            return [replace(p) for p in self._products.values()]

    def get_product(self, product_id: str) -> Optional[Product]:
        with self._lock:
            product = self._products.get(str(product_id))
            return replace(product) if product else None

    def update_product(self, product_id: str, updates: Dict[str, Any]) -> Optional[Product]:
        with self._lock:
            product = self._products.get(str(product_id))
            if not product:
                return None
            for k, v in _column_updates(updates).items():
                setattr(product, k, v)
            product.updated_at = _utcnow()
            return replace(product)

    def delete_product(self, product_id: str) -> Optional[Product]:
        with self._lock:
            return self._products.pop(str(product_id), None)
