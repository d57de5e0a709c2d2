#!/usr/bin/env python3
"""
Create the products table for the configured database.

Uses DATABASE_URL (or database.url in config/catalog_config.yml). Does NOT drop
existing tables.
"""

from __future__ import annotations
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

# Make sure src is on sys.path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import inspect, text
from sqlalchemy.exc import OperationalError

from src.database.models import Base
from src.database.products_real import build_engine
from src.utils.catalog_config_loader import load_catalog_config


def main() -> int:
    cfg = load_catalog_config()
    url = cfg.database.url
    if not url:
        print("DATABASE_URL is not set (and database.url is empty)", file=sys.stderr)
        return 1

    try:
        engine = build_engine(url)

        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("Database connection OK")

        # Only missing tables are created
        Base.metadata.create_all(bind=engine)
        tables = inspect(engine).get_table_names()
        print("App tables now exist:", sorted(tables))
        return 0

    except OperationalError as e:
        print(f"Failed to connect to database: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        return 3


if __name__ == "__main__":
    sys.exit(main())
