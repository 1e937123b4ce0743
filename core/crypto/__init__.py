"""
Core cryptographic utilities.

Module 02 provides hashing utilities for receipt tamper evidence.
"""
from .hashing import (
    DIGEST_HEX_LENGTH,
    sha256,
    hash_canonical,
    hash_canonical_hex,
    to_hex,
    from_hex,
    is_digest_hex,
)

__all__ = [
    "DIGEST_HEX_LENGTH",
    "sha256",
    "hash_canonical",
    "hash_canonical_hex",
    "to_hex",
    "from_hex",
    "is_digest_hex",
]
