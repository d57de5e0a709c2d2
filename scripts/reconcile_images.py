#!/usr/bin/env python3
"""
Recovery pass for the image store.

Commits pending uploads whose product record exists, discards stale pending
uploads with no record, and lists (or removes) stored images that no product
references any more.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.api.app import build_image_store, build_product_store
from src.catalog.products_controller import ProductsController
from src.utils.catalog_config_loader import load_catalog_config


def main() -> int:
    parser = argparse.ArgumentParser(description="Reconcile uploaded images with product records")
    parser.add_argument("--config", type=Path, default=None, help="Path to catalog_config.yml")
    parser.add_argument("--remove-orphans", action="store_true", help="Delete stored images no product references")
    args = parser.parse_args()

    cfg = load_catalog_config(args.config)
    logging.basicConfig(level=getattr(logging, cfg.logging.level.upper(), logging.INFO))

    if not cfg.database.url:
        print("No database URL configured; an in-memory store has no records to reconcile against.", file=sys.stderr)
        return 1

    controller = ProductsController(build_product_store(cfg), build_image_store(cfg))
    report = controller.reconcile_images(remove_orphans=args.remove_orphans or cfg.storage.remove_orphans)
    print(json.dumps(report.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
