"""
Local persistent cache for the fetched product list.

One JSON file holding the list, the ETag it was served with, and the fetch
time. Entries younger than the TTL are used as-is; older ones are revalidated
with If-None-Match by the caller.
"""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

CACHE_VERSION = 1


class ProductListCache:
    def __init__(self, path: Path, ttl_seconds: int = 300) -> None:
        self.path = Path(path)
        self.ttl_seconds = ttl_seconds

    def get(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        try:
            entry = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable product cache %s: %s", self.path, e)
            return None
        if not isinstance(entry, dict) or entry.get("version") != CACHE_VERSION:
            return None
        if not isinstance(entry.get("products"), list):
            return None
        return entry

    def is_fresh(self, entry: Dict[str, Any]) -> bool:
        age = time.time() - float(entry.get("fetched_at") or 0)
        return age < self.ttl_seconds

    def set(self, products: List[Dict[str, Any]], etag: Optional[str]) -> None:
        self._write({"version": CACHE_VERSION, "etag": etag, "fetched_at": time.time(), "products": products})

    def touch(self) -> None:
        """Mark the cached list as freshly revalidated."""
        entry = self.get()
        if entry:
            entry["fetched_at"] = time.time()
            self._write(entry)

    def invalidate(self) -> None:
        """Force the next read to revalidate, keeping the ETag for a conditional request."""
        entry = self.get()
        if entry:
            entry["fetched_at"] = 0
            self._write(entry)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass

    def _write(self, entry: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(entry, default=str), encoding="utf-8")
        os.replace(tmp, self.path)
