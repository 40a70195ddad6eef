"""
Schemas & Canonicalization
File: canonical.py

Purpose: Deterministic JSON serialization for the claims file and the
ledger store, so identical state always produces identical bytes on disk.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel

from .errors import CanonicalizationException

# Canonical JSON separators - no whitespace
CANONICAL_JSON_SEPARATORS: tuple[str, str] = (",", ":")


def ensure_utc(dt: datetime) -> datetime:
    """
    Ensure a datetime is timezone-aware and in UTC.

    Naive datetimes are treated as UTC; aware ones are converted.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_datetime_canonical(dt: datetime) -> str:
    """Format a datetime as ISO-8601 with Z suffix (e.g. "2026-01-27T21:35:00Z")."""
    utc_dt = ensure_utc(dt)
    if utc_dt.microsecond == 0:
        return utc_dt.strftime("%Y-%m-%dT%H:%M:%SZ")
    return utc_dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def canonicalize_value(value: Any, path: str = "") -> Any:
    """
    Recursively convert a value into a JSON-serializable canonical form.

    Bytes become 0x-prefixed hex, tuples become lists, datetimes become
    ISO-8601 strings and pydantic models are dumped in JSON mode.

    Raises:
        CanonicalizationException: For floats or unsupported types. Amounts
            in this system are integers; a float in committed data is a bug.
    """
    if value is None or isinstance(value, (bool, int, str)):
        return value

    if isinstance(value, float):
        raise CanonicalizationException(
            message=f"Float value not allowed in canonical data: {value}",
            details={"path": path},
        )

    if isinstance(value, datetime):
        return format_datetime_canonical(value)

    if isinstance(value, Enum):
        return value.value

    if isinstance(value, bytes):
        return "0x" + value.hex()

    if isinstance(value, BaseModel):
        return canonicalize_value(value.model_dump(mode="python"), path)

    if isinstance(value, dict):
        return {
            str(k): canonicalize_value(v, f"{path}.{k}" if path else str(k))
            for k, v in value.items()
        }

    if isinstance(value, (list, tuple)):
        return [canonicalize_value(item, f"{path}[{i}]") for i, item in enumerate(value)]

    raise CanonicalizationException(
        message=f"Cannot canonicalize value of type {type(value).__name__}",
        details={"path": path, "type": type(value).__name__},
    )


def dumps_canonical(obj: Any, *, indent: int | None = None) -> str:
    """
    Serialize an object to canonical JSON.

    Keys are sorted. With ``indent=None`` no whitespace is emitted; an indent
    may be given for human-facing files, which keeps key order stable.

    Example:
        >>> dumps_canonical({"b": 2, "a": b"\\x01"})
        '{"a":"0x01","b":2}'
    """
    try:
        canonicalized = canonicalize_value(obj)
        return json.dumps(
            canonicalized,
            sort_keys=True,
            separators=CANONICAL_JSON_SEPARATORS if indent is None else None,
            indent=indent,
            ensure_ascii=False,
        )
    except CanonicalizationException:
        raise
    except (TypeError, ValueError) as e:
        raise CanonicalizationException(
            message=f"Failed to serialize to canonical JSON: {e}",
            details={"type": type(obj).__name__},
        ) from e


def loads_canonical(json_str: str) -> Any:
    """Parse a canonical JSON string (datetimes stay as strings)."""
    return json.loads(json_str)
