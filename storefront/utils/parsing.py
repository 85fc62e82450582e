"""
Lenient value coercion shared by routes, schemas and the Excel importer.

Request bodies and spreadsheet cells arrive as strings, numbers or nulls;
these helpers turn them into the values stored on the models.
"""
import math
from typing import Any, Optional

from fastapi import Request

STATUS_VALUES = ("active", "inactive")


def normalize_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # Excel hands numeric cells back as floats
        value = int(value)
    return str(value).strip()


def normalize_optional_text(value: Any) -> Optional[str]:
    text = normalize_text(value)
    return text or None


def parse_positive_int(value: Any) -> Optional[int]:
    """Return value as an int when it is a positive whole number, else None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(number) or not number.is_integer() or number <= 0:
        return None
    return int(number)


def parse_number(value: Any) -> Optional[float]:
    """Return a finite float, or None for blanks and garbage."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def parse_boolean(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
    return None


def parse_status(value: Any) -> Optional[str]:
    status = normalize_text(value).lower()
    return status if status in STATUS_VALUES else None


def to_valid_status(value: Any) -> str:
    """Status used on create: anything unrecognised falls back to active."""
    return parse_status(value) or "active"


def status_filter(value: Optional[str]) -> Optional[str]:
    """List filter: only the exact literals active/inactive are honoured."""
    return value if value in STATUS_VALUES else None


def resolve_record_id(query_id: Any, body: Optional[dict] = None, *keys: str) -> Optional[int]:
    """
    Pick the record id from the query string first, then from the body.

    Args:
        query_id: Raw ``id`` query parameter
        body: Parsed JSON body, if any
        keys: Body keys to try, defaults to ``id``

    Returns:
        Optional[int]: A positive id or None
    """
    record_id = parse_positive_int(query_id)
    if record_id is not None:
        return record_id
    body = body or {}
    for key in keys or ("id",):
        record_id = parse_positive_int(body.get(key))
        if record_id is not None:
            return record_id
    return None


async def read_json_body(request: Request) -> dict:
    """Parse the request body as a JSON object; missing or malformed bodies give {}."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
