"""
Module 02 - Hashing Utilities
Basic hashing and canonical hashing utilities for receipt tamper evidence.

This module provides:
- SHA-256 hashing for raw bytes
- Canonical hashing for objects (via dumps_canonical)
- Lowercase hex encoding/decoding of digests

Security/Determinism Notes:
- Always hash raw bytes exactly as specified
- No auto-stripping of whitespace beyond canonical JSON
- All operations are deterministic
"""
from __future__ import annotations

import hashlib
import re
from typing import Any

from core.schemas.canonical import canonical_bytes

# Length of a SHA-256 digest rendered as hex
DIGEST_HEX_LENGTH = 64

_DIGEST_HEX_RE = re.compile(r"^[0-9a-f]{64}$")


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash of raw bytes.

    Args:
        data: Raw bytes to hash

    Returns:
        32-byte SHA-256 digest

    Example:
        >>> sha256(b"hello").hex()
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """
    return hashlib.sha256(data).digest()


def hash_canonical(obj: Any) -> bytes:
    """
    Hash an object using canonical JSON serialization.

    Rule: digest = sha256(dumps_canonical(obj).encode("utf-8"))

    Args:
        obj: Any object that can be canonically serialized
             (Pydantic model, dict, list, primitives)

    Returns:
        32-byte SHA-256 digest of the canonical JSON

    Raises:
        CanonicalizationException: If object cannot be canonically serialized
    """
    return sha256(canonical_bytes(obj))


def to_hex(data: bytes) -> str:
    """
    Convert a digest to a lowercase hexadecimal string (no prefix).

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        'deadbeef'
    """
    return data.hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert a hexadecimal string to bytes.

    Raises:
        ValueError: If the string has odd length or contains invalid
                   hex characters
    """
    if len(hex_string) % 2 != 0:
        raise ValueError(
            f"Hex string must have even length, got length {len(hex_string)}"
        )
    try:
        return bytes.fromhex(hex_string)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in string: {e}") from e


def is_digest_hex(value: str) -> bool:
    """Check that a string is a full-length lowercase SHA-256 hex digest."""
    return bool(_DIGEST_HEX_RE.match(value))


def hash_canonical_hex(obj: Any) -> str:
    """Canonical hash rendered as lowercase hex."""
    return to_hex(hash_canonical(obj))


__all__ = [
    "DIGEST_HEX_LENGTH",
    "sha256",
    "hash_canonical",
    "hash_canonical_hex",
    "to_hex",
    "from_hex",
    "is_digest_hex",
]
