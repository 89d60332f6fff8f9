"""Shared JSON serialization utilities for type-safe JSON encoding."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any


def _serialize_known_type(obj: Any) -> tuple[bool, Any]:
    """Try to serialize by known type. Returns (handled, result)."""
    if isinstance(obj, (datetime, date)):
        return True, obj.isoformat()
    if isinstance(obj, Decimal):
        return True, float(obj)
    if isinstance(obj, Path):
        return True, str(obj)
    if isinstance(obj, Enum):
        return True, obj.value
    if isinstance(obj, (bytes, bytearray)):
        return True, f"<{len(obj)} bytes>"
    return False, None


def json_serializer(obj: Any) -> Any:
    """
    JSON ``default=`` hook that keeps structured values readable.

    - datetime/date -> ISO 8601 string
    - Decimal -> float
    - Path -> string
    - Enum -> value
    - bytes -> size placeholder (payloads never end up in logs)
    - Everything else -> str()

    Args:
        obj: Object to serialize

    Returns:
        JSON-serializable representation
    """
    handled, result = _serialize_known_type(obj)
    if handled:
        return result
    return str(obj)


__all__ = ["json_serializer"]
