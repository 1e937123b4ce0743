"""
Module 01 - Schemas & Canonicalization
File: canonical.py

Purpose: Deterministic serialization of receipt payloads for hashing
and tamper detection.

CRITICAL: All outputs from this module MUST be deterministic across runs.
"""

import json
import math
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

    Args:
        dt: A datetime object (naive or aware).

    Returns:
        A timezone-aware datetime in UTC.

    Rules:
        - If naive (no tzinfo): treat as UTC
        - If aware: convert to UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    else:
        return dt.astimezone(timezone.utc)


def truncate_to_millis(dt: datetime) -> datetime:
    """
    Normalize a datetime to UTC with millisecond precision.

    Timestamps are stored at the same precision they are canonicalized at,
    so the stored value and the hashed value never disagree.
    """
    utc_dt = ensure_utc(dt)
    return utc_dt.replace(microsecond=(utc_dt.microsecond // 1000) * 1000)


def format_datetime_canonical(dt: datetime) -> str:
    """
    Format a datetime as fixed-precision ISO-8601 UTC text.

    Args:
        dt: A datetime object.

    Returns:
        ISO-8601 string with milliseconds and Z suffix
        (e.g., "2026-01-27T21:35:00.000Z").
    """
    utc_dt = ensure_utc(dt)
    millis = utc_dt.microsecond // 1000
    return utc_dt.strftime("%Y-%m-%dT%H:%M:%S") + f".{millis:03d}Z"


def _validate_float(value: float, path: str = "") -> None:
    """
    Validate that a float is finite (not NaN or Infinity).

    Raises:
        CanonicalizationException: If the float is NaN or Infinity.
    """
    if not math.isfinite(value):
        raise CanonicalizationException(
            message=f"Non-finite float value encountered: {value}",
            details={"path": path, "value": str(value)},
        )


def canonicalize_value(value: Any, path: str = "") -> Any:
    """
    Recursively canonicalize a value for deterministic JSON serialization.

    Args:
        value: Any Python value to canonicalize.
        path: Current path for error reporting.

    Returns:
        A JSON-serializable canonical representation.

    Raises:
        CanonicalizationException: If the value cannot be canonicalized
            (e.g., contains NaN/Infinity floats or an unsupported type).
    """
    if value is None:
        return None

    if isinstance(value, bool):
        # Must check bool before int since bool is subclass of int
        return value

    if isinstance(value, int):
        return value

    if isinstance(value, float):
        _validate_float(value, path)
        return value

    if isinstance(value, str):
        return value

    if isinstance(value, datetime):
        return format_datetime_canonical(value)

    if isinstance(value, Enum):
        return value.value

    if isinstance(value, BaseModel):
        # Dump in python mode so datetimes reach the canonical formatter
        dumped = value.model_dump(exclude_none=True)
        return canonicalize_value(dumped, path)

    if isinstance(value, dict):
        # Keys are sorted during JSON serialization; None values are omitted
        return {
            str(k): canonicalize_value(v, f"{path}.{k}" if path else str(k))
            for k, v in value.items()
            if v is not None
        }

    if isinstance(value, (list, tuple)):
        # Sequence order is significant and preserved
        return [
            canonicalize_value(item, f"{path}[{i}]")
            for i, item in enumerate(value)
        ]

    if isinstance(value, bytes):
        return value.hex()

    raise CanonicalizationException(
        message=f"Cannot canonicalize value of type {type(value).__name__}",
        details={"path": path, "type": type(value).__name__},
    )


def dumps_canonical(obj: Any) -> str:
    """
    Serialize an object to a canonical JSON string.

    Args:
        obj: A Pydantic model, dict, or other serializable object.

    Returns:
        A canonical JSON string with:
            - Sorted keys
            - No extra whitespace
            - None fields excluded
            - Datetimes as ISO-8601 UTC with milliseconds and Z suffix
            - Enums as string values
            - No NaN/Infinity floats

    Raises:
        CanonicalizationException: If serialization fails.

    Example:
        >>> from datetime import datetime
        >>> data = {"b": 2, "a": 1, "time": datetime(2026, 1, 27, 21, 35, 0)}
        >>> dumps_canonical(data)
        '{"a":1,"b":2,"time":"2026-01-27T21:35:00.000Z"}'
    """
    try:
        canonicalized = canonicalize_value(obj)
        return json.dumps(
            canonicalized,
            sort_keys=True,
            separators=CANONICAL_JSON_SEPARATORS,
            ensure_ascii=False,
            allow_nan=False,
        )
    except CanonicalizationException:
        raise
    except Exception as e:
        raise CanonicalizationException(
            message=f"Failed to serialize to canonical JSON: {e}",
            details={"type": type(obj).__name__, "error": str(e)},
        ) from e


def canonical_bytes(obj: Any) -> bytes:
    """UTF-8 encoded canonical JSON; the exact input to the hash function."""
    return dumps_canonical(obj).encode("utf-8")


def canonical_equals(obj1: Any, obj2: Any) -> bool:
    """
    Check if two objects are canonically equal.

    Returns:
        True if the canonical representations are identical.
    """
    try:
        return dumps_canonical(obj1) == dumps_canonical(obj2)
    except CanonicalizationException:
        return False
