"""Backend validation for product update payloads.

PUT and PATCH bodies arrive as plain dictionaries. These helpers read the
allowed fields, check their types, and collect per-field messages.

On validation failure, raise `FormValidationError` so the API can return HTTP 422
with structured `field_errors`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional

ALLOWED_FIELDS = ("name", "description", "price", "imagePath")


@dataclass
class FormValidationError(Exception):
    """Exception raised for payload validation failures.

    Attributes:
        field_errors: mapping of field name -> human-readable error message.
        message: optional top-level message.
    """

    field_errors: Dict[str, str]
    message: str = "Validation failed"

    def __str__(self) -> str:  # pragma: no cover
        return self.message


def _as_str(v: Any) -> str:
    return "" if v is None else str(v)


def _strip(v: Any) -> str:
    return _as_str(v).strip()


def add_error(errors: Dict[str, str], field: str, message: str) -> None:
    if field not in errors:
        errors[field] = message


def pick_allowed(payload: Dict[str, Any], allowed: Iterable[str]) -> Dict[str, Any]:
    """Subset of the payload limited to updatable fields; other keys are dropped."""
    allowed_set = set(allowed)
    return {k: v for k, v in payload.items() if k in allowed_set}


def parse_text(payload: Dict[str, Any], field: str, errors: Dict[str, str]) -> str:
    value = payload.get(field)
    if not isinstance(value, str):
        add_error(errors, field, f"{field} must be a string")
        return ""
    return value


def parse_price(raw: Any, errors: Dict[str, str], field: str = "price") -> Optional[float]:
    """Parse a price from JSON or form input. Blank strings come back as None."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        add_error(errors, field, f"{field} must be a number")
        return None
    if isinstance(raw, (int, float)):
        val = float(raw)
    else:
        s = _strip(raw)
        if not s:
            return None
        try:
            val = float(s)
        except ValueError:
            add_error(errors, field, f"{field} must be a number")
            return None
    if not math.isfinite(val):
        add_error(errors, field, f"{field} must be a finite number")
        return None
    return val


def validate_image_path(value: Any, exists: Callable[[str], bool], errors: Dict[str, str], field: str = "imagePath") -> str:
    if not isinstance(value, str) or not value.strip():
        add_error(errors, field, f"{field} must be a non-empty string")
        return ""
    if not exists(value):
        add_error(errors, field, f"{field} does not reference a stored image")
    return value


def raise_if_errors(errors: Dict[str, str], message: str = "Please correct the highlighted fields") -> None:
    if errors:
        raise FormValidationError(field_errors=errors, message=message)
