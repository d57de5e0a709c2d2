#!/usr/bin/env python3
"""
Command-line front end for the catalog client.

Examples:
    python scripts/catalog_client.py list
    python scripts/catalog_client.py create --name Chair --description Oak --price 49.5 --image chair.jpg
    python scripts/catalog_client.py update <id> --price 0
    python scripts/catalog_client.py delete <id>
    python scripts/catalog_client.py download <id>
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.client.form_controller import ProductFormController
from src.utils.catalog_config_loader import load_catalog_config


async def run(args: argparse.Namespace) -> int:
    cfg = load_catalog_config(args.config)
    controller = ProductFormController.from_config(cfg.client)
    await controller.load(force=args.refresh)

    if args.command == "list":
        print(json.dumps(controller.products, indent=2))
        return 0

    if args.command == "create":
        controller.set_field("name", args.name)
        controller.set_field("description", args.description)
        controller.set_field("price", args.price)
        controller.select_image(args.image)
        return 0 if await controller.submit() else 1

    if args.command == "update":
        if not controller.start_edit(args.product_id):
            return 1
        for field in ("name", "description", "price"):
            value = getattr(args, field)
            if value is not None:
                controller.set_field(field, value)
        return 0 if await controller.submit() else 1

    if args.command == "delete":
        return 0 if await controller.delete(args.product_id) else 1

    if args.command == "download":
        path = await controller.download(args.product_id, args.directory or Path(cfg.client.download_dir))
        if path is None:
            return 1
        print(path)
        return 0

    return 2


def main() -> int:
    parser = argparse.ArgumentParser(description="Product catalog client")
    parser.add_argument("--config", type=Path, default=None)
    parser.add_argument("--refresh", action="store_true", help="Bypass the local list cache")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list")

    create = sub.add_parser("create")
    create.add_argument("--name", default="")
    create.add_argument("--description", default="")
    create.add_argument("--price", default="")
    create.add_argument("--image", type=Path, default=None)

    update = sub.add_parser("update")
    update.add_argument("product_id")
    update.add_argument("--name")
    update.add_argument("--description")
    update.add_argument("--price")

    delete = sub.add_parser("delete")
    delete.add_argument("product_id")

    download = sub.add_parser("download")
    download.add_argument("product_id")
    download.add_argument("--directory", type=Path, default=None)

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
