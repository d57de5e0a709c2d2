"""
Multipart product creation: one image file plus name, description and price.

The image is staged first, the record is written referencing the staged
filename, and only then is the file committed into the image store. A failure
on either side undoes the other half.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from src.catalog.validation import parse_price
from src.storage.image_store import ImageStore

logger = logging.getLogger(__name__)


class UploadValidationError(Exception):
    """The upload request is unusable (HTTP 400)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UploadHandler:
    def __init__(self, db, images: ImageStore):
        self.db = db
        self.images = images

    def create_product(self, fields: Dict[str, Any], original_filename: Optional[str], data: Optional[bytes]):
        """
        Create a product from an uploaded image and its form fields.

        Args:
            fields: text form fields (name, description, price); none are required
            original_filename: client-side filename of the image part, used for its extension
            data: image bytes

        Returns:
            The created product record

        Raises:
            UploadValidationError: no image part, or a price that is not a number
        """
        if not original_filename or data is None:
            raise UploadValidationError("No image file provided")

        errors: Dict[str, str] = {}
        price = parse_price(fields.get("price"), errors)
        if errors:
            raise UploadValidationError(errors["price"])

        filename = self.images.stage(data, ImageStore.extension_of(original_filename))
        try:
            product = self.db.create_product(
                {
                    "name": fields.get("name"),
                    "description": fields.get("description"),
                    "price": price,
                    "imagePath": filename,
                }
            )
        except Exception:
            logger.error("Product record write failed; discarding staged image %s", filename)
            self.images.discard(filename)
            raise

        try:
            self.images.commit(filename)
        except Exception:
            logger.error("Image commit failed for %s; removing product %s", filename, product.id)
            try:
                self.db.delete_product(product.id)
            finally:
                self.images.discard(filename)
            raise

        logger.info("Created product %s with image %s", product.id, filename)
        return product
