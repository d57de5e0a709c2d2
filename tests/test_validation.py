import math

import pytest

from src.catalog.validation import (
    ALLOWED_FIELDS,
    FormValidationError,
    parse_price,
    parse_text,
    pick_allowed,
    raise_if_errors,
    validate_image_path,
)


@pytest.mark.parametrize(
    "raw,expected",
    [(None, None), ("", None), ("   ", None), ("19.5", 19.5), (" 7 ", 7.0), (0, 0.0), (3, 3.0), (2.25, 2.25), ("-5", -5.0), (-0.01, -0.01)],
)
def test_parse_price_accepts(raw, expected):
    errors = {}
    assert parse_price(raw, errors) == expected
    assert errors == {}


@pytest.mark.parametrize(
    "raw,message",
    [
        ("abc", "price must be a number"),
        (True, "price must be a number"),
        ("nan", "price must be a finite number"),
        (math.inf, "price must be a finite number"),
    ],
)
def test_parse_price_rejects(raw, message):
    errors = {}
    parse_price(raw, errors)
    assert errors == {"price": message}


def test_parse_text_requires_string():
    errors = {}
    assert parse_text({"name": ""}, "name", errors) == ""
    assert errors == {}
    parse_text({"name": 5}, "name", errors)
    assert errors == {"name": "name must be a string"}


def test_pick_allowed_drops_extra_keys():
    payload = {"name": "x", "_id": 1, "createdAt": 2, "imagePath": "1.jpg"}
    assert pick_allowed(payload, ALLOWED_FIELDS) == {"name": "x", "imagePath": "1.jpg"}


def test_validate_image_path():
    errors = {}
    validate_image_path("1.jpg", lambda name: name == "1.jpg", errors)
    assert errors == {}
    validate_image_path("2.jpg", lambda name: False, errors)
    assert errors == {"imagePath": "imagePath does not reference a stored image"}


def test_raise_if_errors():
    raise_if_errors({})
    with pytest.raises(FormValidationError) as exc:
        raise_if_errors({"price": "bad"})
    assert exc.value.field_errors == {"price": "bad"}
