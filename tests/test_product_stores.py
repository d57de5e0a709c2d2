from datetime import timedelta

import pytest

from src.database.products import product_to_dict
from src.database.products_real import _normalize_connection_string


@pytest.fixture(params=["memory", "sqlite"])
def store(request, db, sqlite_db):
    return db if request.param == "memory" else sqlite_db


def test_create_and_get_round_trip(store):
    created = store.create_product({"name": "Lamp", "description": "Brass", "price": 12.0, "imagePath": "1.jpg"})
    fetched = store.get_product(created.id)
    assert product_to_dict(fetched) == {
        "_id": created.id,
        "name": "Lamp",
        "description": "Brass",
        "price": 12.0,
        "imagePath": "1.jpg",
    }


def test_list_keeps_creation_order(store):
    ids = [store.create_product({"name": n}).id for n in ("a", "b", "c")]
    assert [p.id for p in store.list_products()] == ids


def test_update_changes_only_given_fields(store):
    created = store.create_product({"name": "Lamp", "description": "Brass", "price": 12.0})
    updated = store.update_product(created.id, {"price": 0.0, "unknown": "ignored"})
    assert updated.price == 0.0
    assert updated.name == "Lamp"
    assert updated.description == "Brass"
    assert not hasattr(updated, "unknown")


def test_update_missing_returns_none(store):
    assert store.update_product("missing", {"name": "x"}) is None


def test_delete_returns_record_then_forgets_it(store):
    created = store.create_product({"name": "Lamp"})
    deleted = store.delete_product(created.id)
    assert deleted.id == created.id
    assert store.get_product(created.id) is None
    assert store.delete_product(created.id) is None


def test_returned_records_are_detached_copies(db):
    created = db.create_product({"name": "Lamp"})
    created.name = "changed locally"
    assert db.get_product(created.id).name == "Lamp"


def test_timestamps_are_timezone_aware_utc(db):
    created = db.create_product({"name": "Lamp"})
    assert created.created_at.utcoffset() == timedelta(0)
    updated = db.update_product(created.id, {"name": "Desk lamp"})
    assert updated.updated_at.tzinfo is not None
    assert updated.updated_at >= created.created_at


def test_ping(store):
    assert store.ping() is True


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("  sqlite:///x.db  ", "sqlite:///x.db"),
        ("'postgresql://u:p@h/db'", "postgresql://u:p@h/db"),
        ("psql 'postgresql://u:p@h/db'", "postgresql://u:p@h/db"),
    ],
)
def test_normalize_connection_string(raw, expected):
    assert _normalize_connection_string(raw) == expected
