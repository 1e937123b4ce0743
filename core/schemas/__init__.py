"""
Module 01 - Schemas & Canonicalization
File: __init__.py

Purpose: Export the public API for the schemas module.
This is the main entry point for other modules to import schema definitions.
"""

# Canonical serialization API
from .canonical import (
    CANONICAL_JSON_SEPARATORS,
    canonical_bytes,
    canonical_equals,
    canonicalize_value,
    dumps_canonical,
    ensure_utc,
    format_datetime_canonical,
    truncate_to_millis,
)

# Error models and exceptions
from .errors import (
    CanonicalizationException,
    ConflictException,
    ErrorCodes,
    InvalidTransitionException,
    NotFoundException,
    ReceiptsError,
    ReceiptsException,
    SchemaValidationException,
)

# Receipt data model
from .receipt import (
    HASH_FIELDS,
    IMMUTABLE_FIELDS,
    MUTABLE_FIELDS,
    PUBLIC_FIELDS,
    CreateReceiptInput,
    LineItem,
    PublicReceiptView,
    Receipt,
    ReceiptStatus,
    RefundReceiptInput,
    VoidReceiptInput,
    amounts_balance,
)

# Verification results
from .verification import (
    CHECK_CODE_MATCH,
    CHECK_HASH_MATCH,
    CHECK_RECEIPT_FOUND,
    REASON_CODE_MISMATCH,
    REASON_HASH_MISMATCH,
    REASON_NOT_FOUND,
    CheckResult,
    ReceiptVerificationResult,
)

__all__ = [
    # Canonical
    "CANONICAL_JSON_SEPARATORS",
    "canonical_bytes",
    "canonical_equals",
    "canonicalize_value",
    "dumps_canonical",
    "ensure_utc",
    "format_datetime_canonical",
    "truncate_to_millis",
    # Errors
    "CanonicalizationException",
    "ConflictException",
    "ErrorCodes",
    "InvalidTransitionException",
    "NotFoundException",
    "ReceiptsError",
    "ReceiptsException",
    "SchemaValidationException",
    # Receipt
    "HASH_FIELDS",
    "IMMUTABLE_FIELDS",
    "MUTABLE_FIELDS",
    "PUBLIC_FIELDS",
    "CreateReceiptInput",
    "LineItem",
    "PublicReceiptView",
    "Receipt",
    "ReceiptStatus",
    "RefundReceiptInput",
    "VoidReceiptInput",
    "amounts_balance",
    # Verification
    "CHECK_CODE_MATCH",
    "CHECK_HASH_MATCH",
    "CHECK_RECEIPT_FOUND",
    "REASON_CODE_MISMATCH",
    "REASON_HASH_MISMATCH",
    "REASON_NOT_FOUND",
    "CheckResult",
    "ReceiptVerificationResult",
]
