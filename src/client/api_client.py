"""
Product Catalog HTTP Client.

Talks to the catalog API (/api/products). Responses are normalized to plain
product dicts: update endpoints wrap the record in `{message, updatedProduct}`,
and callers only ever see the record.
"""

from __future__ import annotations

import mimetypes
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import httpx

_FILENAME_RE = re.compile(r"filename\*?=([^;]+)", re.IGNORECASE)


@dataclass
class ListResult:
    products: Optional[List[Dict[str, Any]]]
    etag: Optional[str]
    not_modified: bool = False


def unwrap_product(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return the product record from either a plain record or an update envelope."""
    if isinstance(data, dict) and isinstance(data.get("updatedProduct"), dict):
        return data["updatedProduct"]
    return data


def filename_from_disposition(header: Optional[str], default: str) -> str:
    """
    Pull the filename out of a Content-Disposition header, reduced to a bare
    basename so it cannot point outside the download directory.
    """
    if not header:
        return default
    match = _FILENAME_RE.search(header)
    if not match:
        return default
    raw = match.group(1).strip().strip('"').strip("'")
    if raw.lower().startswith("utf-8''"):
        raw = raw[7:]
    name = os.path.basename(raw.replace("\\", "/"))
    if name in ("", ".", ".."):
        return default
    return name


class ProductApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or os.getenv("CATALOG_API_URL", "http://localhost:3000")).rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout_seconds, transport=self.transport)

    async def list_products(self, etag: Optional[str] = None) -> ListResult:
        headers: Dict[str, str] = {}
        if etag:
            headers["If-None-Match"] = etag
        async with self._client() as client:
            response = await client.get("/api/products", headers=headers)
        if response.status_code == 304:
            return ListResult(products=None, etag=response.headers.get("etag", etag), not_modified=True)
        response.raise_for_status()
        return ListResult(products=response.json(), etag=response.headers.get("etag"))

    async def create_product(
        self,
        name: str,
        description: str,
        price: Any,
        image: Optional[Path] = None,
    ) -> Dict[str, Any]:
        data = {
            "name": name or "",
            "description": description or "",
            "price": "" if price is None else str(price),
        }
        files = None
        if image is not None:
            image = Path(image)
            content_type = mimetypes.guess_type(image.name)[0] or "application/octet-stream"
            files = {"image": (image.name, image.read_bytes(), content_type)}
        async with self._client() as client:
            response = await client.post("/api/products", data=data, files=files)
        response.raise_for_status()
        return response.json()

    async def update_product(self, product_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        async with self._client() as client:
            response = await client.put(f"/api/products/{product_id}", json=fields)
        response.raise_for_status()
        return unwrap_product(response.json())

    async def patch_product(self, product_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        async with self._client() as client:
            response = await client.patch(f"/api/products/{product_id}", json=fields)
        response.raise_for_status()
        return unwrap_product(response.json())

    async def delete_product(self, product_id: str) -> Dict[str, Any]:
        async with self._client() as client:
            response = await client.delete(f"/api/products/{product_id}")
        response.raise_for_status()
        return response.json()

    async def download_product(self, product_id: str) -> Tuple[str, bytes]:
        async with self._client() as client:
            response = await client.get(f"/api/products/{product_id}/download")
        response.raise_for_status()
        filename = filename_from_disposition(response.headers.get("content-disposition"), f"product_{product_id}.jpg")
        return filename, response.content
