"""
Core Receipts Module

Tamper-evident receipts for economic transactions: issuance, tenant-scoped
lookup, hash and code verification, and the void/refund lifecycle.
"""

from .integrity import (
    compute_hash,
    compute_receipt_hash,
    derive_verification_code,
    is_well_formed_code,
    verify_code,
    verify_hash,
)
from .io import (
    ReceiptIOError,
    dump_receipt_json,
    load_receipt,
    parse_receipt,
    save_receipt,
)
from .lifecycle import (
    LifecycleAction,
    LifecycleAnnotation,
    MetadataKeys,
    merge_metadata,
    next_status,
    transition,
)
from .service import ReceiptService
from .storage import InMemoryReceiptStore, ReceiptStore
from .validation import (
    validate_create_input,
    validate_pagination,
    validate_refund_input,
    validate_tenant_id,
    validate_void_input,
)

__all__ = [
    # Integrity
    "compute_hash",
    "compute_receipt_hash",
    "derive_verification_code",
    "is_well_formed_code",
    "verify_code",
    "verify_hash",
    # IO
    "ReceiptIOError",
    "dump_receipt_json",
    "load_receipt",
    "parse_receipt",
    "save_receipt",
    # Lifecycle
    "LifecycleAction",
    "LifecycleAnnotation",
    "MetadataKeys",
    "merge_metadata",
    "next_status",
    "transition",
    # Service & storage
    "ReceiptService",
    "ReceiptStore",
    "InMemoryReceiptStore",
    # Validation
    "validate_create_input",
    "validate_pagination",
    "validate_refund_input",
    "validate_tenant_id",
    "validate_void_input",
]
