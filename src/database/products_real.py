"""
SQLAlchemy-backed product store, used when a database URL is configured.
Implements the same interface as src.database.products (in-memory stub).
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional
from uuid import uuid4

from sqlalchemy import create_engine, select, text
from sqlalchemy.orm import Session, sessionmaker

from src.database.models import Base, Product
from src.database.products import _column_updates, _utcnow


def _normalize_connection_string(s: str) -> str:
    """Strip common mistakes: 'psql \'...\'', extra quotes, whitespace."""
    s = s.strip()
    if re.match(r"^psql\s+", s, re.IGNORECASE):
        s = re.sub(r"^psql\s+", "", s, flags=re.IGNORECASE).strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ("'", '"'):
        s = s[1:-1].strip()
    return s


def build_engine(connection_string: str):
    connection_string = _normalize_connection_string(connection_string)
    if connection_string.startswith("sqlite"):
        # Requests are served from a thread pool; sqlite connections must be shareable.
        return create_engine(connection_string, connect_args={"check_same_thread": False})
    return create_engine(connection_string, pool_pre_ping=True, pool_size=5, max_overflow=10)


class ProductStore:
    """
    Product collection persisted through SQLAlchemy. Updates are
    read-modify-write inside one session; concurrent writers are last-write-wins.
    """

    def __init__(self, connection_string: str) -> None:
        self.engine = build_engine(connection_string)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine, expire_on_commit=False)

    def create_tables(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False

    @contextmanager
    def _session(self) -> Iterator[Session]:
        s = self.SessionLocal()
        try:
            yield s
            s.commit()
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

    # ------------------------------------------------------------------ #
    # Products
    # ------------------------------------------------------------------ #
    def create_product(self, fields: Dict[str, Any]) -> Product:
        with self._session() as s:
            product = Product(
                id=str(uuid4()),
                created_at=_utcnow(),
                updated_at=_utcnow(),
                **_column_updates(fields),
            )
            s.add(product)
            s.flush()
            s.refresh(product)
            return product

    def list_products(self) -> List[Product]:
        with self._session() as s:
            stmt = select(Product).order_by(Product.created_at.asc())
            return list(s.execute(stmt).scalars().all())

    def get_product(self, product_id: str) -> Optional[Product]:
        with self._session() as s:
            stmt = select(Product).where(Product.id == str(product_id))
            return s.execute(stmt).scalar_one_or_none()

    def update_product(self, product_id: str, updates: Dict[str, Any]) -> Optional[Product]:
        with self._session() as s:
            stmt = select(Product).where(Product.id == str(product_id))
            product = s.execute(stmt).scalar_one_or_none()
            if not product:
                return None
            for k, v in _column_updates(updates).items():
                setattr(product, k, v)
            product.updated_at = _utcnow()
            s.add(product)
            s.flush()
            s.refresh(product)
            return product

    def delete_product(self, product_id: str) -> Optional[Product]:
        with self._session() as s:
            stmt = select(Product).where(Product.id == str(product_id))
            product = s.execute(stmt).scalar_one_or_none()
            if not product:
                return None
            s.delete(product)
            return product
