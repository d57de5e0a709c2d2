"""Controller for product record reads, updates and deletes."""
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import logging

from src.catalog.validation import (
    ALLOWED_FIELDS,
    FormValidationError,
    add_error,
    parse_price,
    parse_text,
    pick_allowed,
    raise_if_errors,
    validate_image_path,
)
from src.database.products import product_to_dict
from src.storage.image_store import ImageStore, ReconcileReport

logger = logging.getLogger(__name__)


def _require_object(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise FormValidationError(field_errors={"body": "Request body must be a JSON object"})
    return payload


class ProductsController:
    def __init__(self, db, images: ImageStore):
        self.db = db
        self.images = images

    def list_products(self) -> List[Dict[str, Any]]:
        return [product_to_dict(p) for p in self.db.list_products()]

    def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        product = self.db.get_product(product_id)
        return product_to_dict(product) if product else None

    def delete_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        # The image file stays in the store; reconcile_images() reports it as an orphan.
        product = self.db.delete_product(product_id)
        if not product:
            return None
        logger.info("Deleted product %s", product_id)
        return product_to_dict(product)

    # Updates
    def full_update(self, product_id: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Replace-style update. Only name, description, price and imagePath are
        read; a key that is absent or null keeps the stored value. A blank
        price string counts as not supplied, and so does a blank imagePath.
        """
        payload = _require_object(payload)
        if not self.db.get_product(product_id):
            return None

        errors: Dict[str, str] = {}
        updates: Dict[str, Any] = {}
        for field in ("name", "description"):
            if payload.get(field) is not None:
                updates[field] = parse_text(payload, field, errors)
        price = parse_price(payload.get("price"), errors)
        if price is not None:
            updates["price"] = price
        image_path = payload.get("imagePath")
        if image_path is not None and not (isinstance(image_path, str) and not image_path.strip()):
            updates["imagePath"] = validate_image_path(image_path, self.images.exists, errors)
        raise_if_errors(errors)

        product = self.db.update_product(product_id, updates)
        if not product:
            return None
        logger.info("Updated product %s fields=%s", product_id, sorted(updates))
        return product_to_dict(product)

    def partial_update(self, product_id: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Merge-style update over the allow-listed fields; every supplied field is
        written. Keys outside the allow-list are dropped without an error.
        """
        payload = pick_allowed(_require_object(payload), ALLOWED_FIELDS)
        if not self.db.get_product(product_id):
            return None

        errors: Dict[str, str] = {}
        updates: Dict[str, Any] = {}
        for field in ("name", "description"):
            if field in payload:
                updates[field] = parse_text(payload, field, errors)
        if "price" in payload:
            price = parse_price(payload["price"], errors)
            if price is None:
                add_error(errors, "price", "price must be a number")
            updates["price"] = price
        if "imagePath" in payload:
            updates["imagePath"] = validate_image_path(payload["imagePath"], self.images.exists, errors)
        raise_if_errors(errors)

        product = self.db.update_product(product_id, updates)
        if not product:
            return None
        logger.info("Patched product %s fields=%s", product_id, sorted(updates))
        return product_to_dict(product)

    # Files
    def get_download(self, product_id: str) -> Optional[Tuple[Path, str]]:
        """Path and stored filename of a product's image, or None if either is missing."""
        product = self.db.get_product(product_id)
        if not product or not product.image_path:
            return None
        try:
            path = self.images.resolve(product.image_path)
        except ValueError:
            logger.warning("Product %s has an unusable imagePath %r", product_id, product.image_path)
            return None
        if not path.is_file():
            logger.warning("Image %s for product %s is missing on disk", product.image_path, product_id)
            return None
        return path, product.image_path

    def reconcile_images(self, remove_orphans: bool = False) -> ReconcileReport:
        referenced = [p.image_path for p in self.db.list_products() if p.image_path]
        return self.images.reconcile(referenced, remove_orphans=remove_orphans)
