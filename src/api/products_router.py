"""
Product catalog endpoints: list, create (multipart upload), full and partial
update, delete, and image download.

Error bodies are flat JSON objects: `{"message": ...}` for not-found and
server errors, `{"error": ...}` for upload failures.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Request, Response, status
from fastapi.responses import FileResponse, JSONResponse
from starlette.datastructures import UploadFile

from src.catalog.products_controller import ProductsController
from src.catalog.upload_handler import UploadHandler, UploadValidationError
from src.catalog.validation import FormValidationError
from src.error_handler import ErrorHandler

logger = logging.getLogger(__name__)

api = APIRouter()
error_handler = ErrorHandler()

NOT_FOUND = {"message": "Product not found"}


def get_controller(request: Request) -> ProductsController:
    """Dependency for the products controller"""
    return request.app.state.products_controller


def get_upload_handler(request: Request) -> UploadHandler:
    """Dependency for the upload handler"""
    return request.app.state.upload_handler


def compute_etag(products: List[Dict[str, Any]]) -> str:
    raw = json.dumps(products, sort_keys=True, default=str).encode("utf-8")
    return f'"{hashlib.sha1(raw).hexdigest()}"'


def _etag_matches(if_none_match: Optional[str], etag: str) -> bool:
    if not if_none_match:
        return False
    candidates = [c.strip() for c in if_none_match.split(",")]
    return "*" in candidates or any(c.removeprefix("W/") == etag for c in candidates)


def _validation_response(e: FormValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_handler.validation_error(e.field_errors, e.message),
    )


def _server_error(e: Exception, operation: str, **context: Any) -> JSONResponse:
    body = error_handler.handle_exception(e, context={"operation": operation, **context})
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


@api.get("/products", tags=["Products"])
async def list_products(request: Request, controller: ProductsController = Depends(get_controller)):
    try:
        products = controller.list_products()
    except Exception as e:
        return _server_error(e, "list_products")

    etag = compute_etag(products)
    if _etag_matches(request.headers.get("if-none-match"), etag):
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers={"ETag": etag})
    return JSONResponse(content=products, headers={"ETag": etag})


@api.post("/products", status_code=status.HTTP_201_CREATED, tags=["Products"])
async def create_product(request: Request, handler: UploadHandler = Depends(get_upload_handler)):
    try:
        form = await request.form()
        image = form.get("image")
        filename: Optional[str] = None
        data: Optional[bytes] = None
        if isinstance(image, UploadFile) and image.filename:
            filename = image.filename
            data = await image.read()
        fields = {k: form.get(k) for k in ("name", "description", "price") if isinstance(form.get(k), str)}
        handler.create_product(fields, filename, data)
    except UploadValidationError as e:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": e.message})
    except Exception as e:
        body = error_handler.handle_exception(e, context={"operation": "create_product"}, key="error", message="Failed to upload product")
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)

    return JSONResponse(status_code=status.HTTP_201_CREATED, content={"message": "Product uploaded successfully"})


@api.get("/products/{product_id}/download", tags=["Products"])
async def download_product(product_id: str, request: Request, controller: ProductsController = Depends(get_controller)):
    try:
        target = controller.get_download(product_id)
    except Exception as e:
        return _server_error(e, "download_product", product_id=product_id)

    if not target:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"message": "Product or file not found"})

    path, stored_filename = target
    logger.info("Serving download for product %s: %s", product_id, stored_filename)
    return FileResponse(
        path=path,
        media_type=request.app.state.settings.storage.download_media_type,
        headers={"Content-Disposition": f"attachment; filename={stored_filename}"},
    )


@api.put("/products/{product_id}", tags=["Products"])
async def update_product(product_id: str, payload: Any = Body(...), controller: ProductsController = Depends(get_controller)):
    try:
        product = controller.full_update(product_id, payload)
    except FormValidationError as e:
        return _validation_response(e)
    except Exception as e:
        return _server_error(e, "update_product", product_id=product_id)

    if not product:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=NOT_FOUND)
    return {"message": "Product updated successfully", "updatedProduct": product}


@api.patch("/products/{product_id}", tags=["Products"])
async def patch_product(product_id: str, payload: Any = Body(...), controller: ProductsController = Depends(get_controller)):
    try:
        product = controller.partial_update(product_id, payload)
    except FormValidationError as e:
        return _validation_response(e)
    except Exception as e:
        return _server_error(e, "patch_product", product_id=product_id)

    if not product:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=NOT_FOUND)
    return {"message": "Product updated successfully", "updatedProduct": product}


@api.delete("/products/{product_id}", tags=["Products"])
async def delete_product(product_id: str, controller: ProductsController = Depends(get_controller)):
    try:
        deleted = controller.delete_product(product_id)
    except Exception as e:
        return _server_error(e, "delete_product", product_id=product_id)

    if not deleted:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=NOT_FOUND)
    return {"message": "Product deleted successfully"}
