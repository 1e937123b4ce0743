"""
Receipt Integrity

Hash engine for receipts: digest over the proof payload, the short
verification code derived from it, and the two verification primitives.

Rules:
- hash = sha256(canonical_json(proof_payload)) as lowercase hex
- verification_code = upper(hash[:8]) grouped as XXXX-XXXX
- status and metadata are never part of the hash input
"""

from __future__ import annotations

import hmac
import re
from typing import Any, Mapping

from core.crypto.hashing import hash_canonical_hex
from core.schemas.receipt import HASH_FIELDS, Receipt

# Number of digest hex characters carried by a verification code
CODE_HEX_CHARS = 8
CODE_GROUP_SIZE = 4

VERIFICATION_CODE_RE = re.compile(r"^[A-F0-9]{4}-[A-F0-9]{4}$")


def _equals(a: str, b: str) -> bool:
    # compare_digest rejects non-ASCII str input
    if not (a.isascii() and b.isascii()):
        return False
    return hmac.compare_digest(a, b)


def compute_hash(payload: Mapping[str, Any]) -> str:
    """
    Compute the receipt digest over a proof payload.

    Only keys in HASH_FIELDS contribute; anything else in the mapping
    (status, metadata, a stale hash) is ignored.

    Returns:
        64-character lowercase hex SHA-256 digest
    """
    hash_input = {name: payload.get(name) for name in HASH_FIELDS}
    return hash_canonical_hex(hash_input)


def compute_receipt_hash(receipt: Receipt) -> str:
    """Recompute the digest from a receipt's current proof payload."""
    return compute_hash(receipt.proof_payload())


def verify_hash(receipt: Receipt) -> bool:
    """
    Tamper-detection primitive.

    Recomputes the digest over the receipt's current immutable fields and
    compares it with the stored hash.
    """
    expected = compute_receipt_hash(receipt)
    return _equals(expected, receipt.hash)


def derive_verification_code(digest: str) -> str:
    """
    Derive the short human-readable code from a hex digest.

    Example:
        >>> derive_verification_code("3fa9c0d1" + "0" * 56)
        '3FA9-C0D1'
    """
    prefix = digest[:CODE_HEX_CHARS].upper()
    return f"{prefix[:CODE_GROUP_SIZE]}-{prefix[CODE_GROUP_SIZE:CODE_HEX_CHARS]}"


def verify_code(receipt: Receipt, supplied_code: str) -> bool:
    """
    Check a supplied code against the receipt's stored digest.

    Comparison is case-insensitive. This does not re-verify the hash: it
    only proves the code corresponds to the digest the receipt claims.
    Combine with verify_hash for tamper detection.
    """
    expected = derive_verification_code(receipt.hash)
    return _equals(expected, supplied_code.strip().upper())


def is_well_formed_code(code: str) -> bool:
    """Check a code matches XXXX-XXXX over uppercase hex (after upper-casing)."""
    return bool(VERIFICATION_CODE_RE.match(code.strip().upper()))


__all__ = [
    "CODE_HEX_CHARS",
    "VERIFICATION_CODE_RE",
    "compute_hash",
    "compute_receipt_hash",
    "verify_hash",
    "derive_verification_code",
    "verify_code",
    "is_well_formed_code",
]
