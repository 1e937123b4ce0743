"""
Receipt Service

Lifecycle manager for tamper-evident receipts: generation, tenant-scoped
lookup, verification, the public view, and the void/refund transitions.

Flow:
    caller -> validation -> ReceiptService -> integrity (hash/code) -> ReceiptStore

Read paths (get*, verify*, get_public_view) never raise for a missing
receipt; a receipt under another tenant is indistinguishable from absent.
Mutating paths (void, refund) raise NotFoundException instead.

Usage:
    service = ReceiptService(InMemoryReceiptStore())
    receipt = service.generate({...})
    result = service.verify(receipt.tenant_id, receipt.receipt_id)
    assert result.valid
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Union

from core.config import RuntimeConfig, get_default_config
from core.schemas.canonical import truncate_to_millis
from core.schemas.errors import InvalidTransitionException, NotFoundException
from core.schemas.receipt import (
    CreateReceiptInput,
    PublicReceiptView,
    Receipt,
    ReceiptStatus,
    RefundReceiptInput,
    VoidReceiptInput,
)
from core.schemas.verification import (
    CHECK_CODE_MATCH,
    CHECK_HASH_MATCH,
    CHECK_RECEIPT_FOUND,
    REASON_CODE_MISMATCH,
    REASON_HASH_MISMATCH,
    REASON_NOT_FOUND,
    CheckResult,
    ReceiptVerificationResult,
)

from .integrity import compute_hash, compute_receipt_hash, derive_verification_code, verify_code, verify_hash
from .lifecycle import LifecycleAction, LifecycleAnnotation, merge_metadata, transition
from .storage import ReceiptStore
from .validation import (
    validate_create_input,
    validate_identifier,
    validate_pagination,
    validate_refund_input,
    validate_tenant_id,
    validate_void_input,
)


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReceiptService:
    """
    Stateless between calls; all shared state lives in the store.

    Args:
        store: Storage backend satisfying the ReceiptStore contract
        config: Runtime configuration (defaults to get_default_config())
        clock: Source of "now" for issued_at and lifecycle annotations
        id_factory: Receipt id generator (defaults to random hex)
    """

    def __init__(
        self,
        store: ReceiptStore,
        config: Optional[RuntimeConfig] = None,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self._store = store
        self._config = config or get_default_config()
        self._clock = clock or _utcnow
        self._id_factory = id_factory or self._random_id

    @property
    def store(self) -> ReceiptStore:
        return self._store

    def _random_id(self) -> str:
        return secrets.token_hex(self._config.receipts.id_bytes)

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    def generate(self, data: Union[CreateReceiptInput, Mapping[str, Any]]) -> Receipt:
        """
        Issue a receipt for a transaction.

        Raises:
            SchemaValidationException: Malformed input or subtotal + tax != total
            ConflictException: Receipt id or (tenant, transaction) already stored
        """
        validated = validate_create_input(data)

        payload: dict[str, Any] = {
            "receipt_id": self._id_factory(),
            "tenant_id": validated.tenant_id,
            "transaction_id": validated.transaction_id,
            "issued_at": truncate_to_millis(self._clock()),
            "issued_by": validated.issued_by,
            "line_items": validated.line_items,
            "subtotal": validated.subtotal,
            "tax": validated.tax,
            "total": validated.total,
            "currency": validated.currency,
            "payment_method": validated.payment_method,
            "audit_event_id": validated.audit_event_id,
        }
        digest = compute_hash(payload)

        receipt = Receipt(
            **payload,
            status=ReceiptStatus.ISSUED,
            hash=digest,
            verification_code=derive_verification_code(digest),
            metadata=dict(validated.metadata or {}),
        )

        stored = self._store.create(receipt)
        logger.info(
            "Issued receipt %s for tenant %s transaction %s (code %s)",
            stored.receipt_id,
            stored.tenant_id,
            stored.transaction_id,
            stored.verification_code,
        )
        return stored

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get(self, tenant_id: str, receipt_id: str) -> Optional[Receipt]:
        """Tenant-scoped lookup; None when absent or owned by another tenant."""
        tenant_id = validate_tenant_id(tenant_id)
        receipt_id = validate_identifier(receipt_id, "receipt_id")
        receipt = self._store.get(tenant_id, receipt_id)
        logger.debug("Lookup %s/%s: %s", tenant_id, receipt_id, "hit" if receipt else "miss")
        return receipt

    def get_by_transaction(self, tenant_id: str, transaction_id: str) -> Optional[Receipt]:
        """Tenant-scoped lookup via the transaction index."""
        tenant_id = validate_tenant_id(tenant_id)
        transaction_id = validate_identifier(transaction_id, "transaction_id")
        return self._store.get_by_transaction(tenant_id, transaction_id)

    def list(
        self,
        tenant_id: str,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Receipt]:
        """A tenant's receipts, most recently issued first."""
        tenant_id = validate_tenant_id(tenant_id)
        if limit is None:
            limit = self._config.storage.default_list_limit
        limit, offset = validate_pagination(limit, offset, self._config.storage.max_list_limit)
        return self._store.list(tenant_id, limit, offset)

    # -------------------------------------------------------------------------
    # Verification
    # -------------------------------------------------------------------------

    def verify(self, tenant_id: str, receipt_id: str) -> ReceiptVerificationResult:
        """
        Authoritative tamper check: recompute the hash and compare.

        Returns valid=False with REASON_NOT_FOUND when the receipt is absent
        from the tenant's namespace, or REASON_HASH_MISMATCH when its content
        no longer matches its hash.
        """
        receipt = self.get(tenant_id, receipt_id)
        if receipt is None:
            return self._not_found(receipt_id)

        found = CheckResult.passed(CHECK_RECEIPT_FOUND, "Receipt found")
        if not verify_hash(receipt):
            logger.warning(
                "Hash mismatch for receipt %s (tenant %s)", receipt.receipt_id, receipt.tenant_id
            )
            return ReceiptVerificationResult.failure(
                REASON_HASH_MISMATCH,
                receipt=receipt,
                checks=[
                    found,
                    CheckResult.failed(
                        CHECK_HASH_MATCH,
                        "Receipt hash does not match content",
                        details={
                            "stored_hash": receipt.hash,
                            "computed_hash": compute_receipt_hash(receipt),
                        },
                    ),
                ],
            )

        return ReceiptVerificationResult.success(
            receipt,
            checks=[found, CheckResult.passed(CHECK_HASH_MATCH, "Receipt hash matches content")],
        )

    def verify_by_code(self, tenant_id: str, receipt_id: str, code: str) -> ReceiptVerificationResult:
        """
        Manual-channel check of a short verification code.

        The code is compared with the one derived from the stored hash; it
        does not recompute the hash. Use verify() for tamper detection.
        """
        receipt = self.get(tenant_id, receipt_id)
        if receipt is None:
            return self._not_found(receipt_id)

        found = CheckResult.passed(CHECK_RECEIPT_FOUND, "Receipt found")
        if not verify_code(receipt, code):
            logger.info("Verification code mismatch for receipt %s", receipt.receipt_id)
            return ReceiptVerificationResult.failure(
                REASON_CODE_MISMATCH,
                receipt=receipt,
                checks=[found, CheckResult.failed(CHECK_CODE_MATCH, "Verification code does not match")],
            )

        return ReceiptVerificationResult.success(
            receipt,
            checks=[found, CheckResult.passed(CHECK_CODE_MATCH, "Verification code matches")],
        )

    def get_public_view(self, tenant_id: str, receipt_id: str) -> Optional[PublicReceiptView]:
        """PII-free projection for external verification, or None."""
        receipt = self.get(tenant_id, receipt_id)
        if receipt is None:
            return None
        return receipt.to_public_view()

    @staticmethod
    def _not_found(receipt_id: str) -> ReceiptVerificationResult:
        return ReceiptVerificationResult.failure(
            REASON_NOT_FOUND,
            checks=[
                CheckResult.failed(
                    CHECK_RECEIPT_FOUND,
                    "Receipt not found",
                    details={"receipt_id": receipt_id},
                )
            ],
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def void(self, data: Union[VoidReceiptInput, Mapping[str, Any]]) -> Receipt:
        """
        Void an issued receipt.

        Raises:
            SchemaValidationException: Malformed input
            NotFoundException: Receipt absent from the tenant's namespace
            InvalidTransitionException: Receipt is not in the issued state
        """
        validated = validate_void_input(data)
        return self._change_status(
            LifecycleAction.VOID,
            tenant_id=validated.tenant_id,
            receipt_id=validated.receipt_id,
            actor=validated.voided_by,
            reason=validated.reason,
            audit_event_id=validated.audit_event_id,
        )

    def refund(self, data: Union[RefundReceiptInput, Mapping[str, Any]]) -> Receipt:
        """
        Mark an issued receipt as refunded.

        Raises:
            SchemaValidationException: Malformed input
            NotFoundException: Receipt absent from the tenant's namespace
            InvalidTransitionException: Receipt is not in the issued state
        """
        validated = validate_refund_input(data)
        return self._change_status(
            LifecycleAction.REFUND,
            tenant_id=validated.tenant_id,
            receipt_id=validated.receipt_id,
            actor=validated.refunded_by,
            reason=validated.reason,
            audit_event_id=validated.audit_event_id,
        )

    def _change_status(
        self,
        action: LifecycleAction,
        *,
        tenant_id: str,
        receipt_id: str,
        actor: str,
        reason: str,
        audit_event_id: Optional[str],
    ) -> Receipt:
        receipt = self._store.get(tenant_id, receipt_id)
        if receipt is None:
            raise NotFoundException(
                f"Receipt not found: {receipt_id}",
                tenant_id=tenant_id,
                receipt_id=receipt_id,
            )

        try:
            target = transition(receipt.status, action, receipt_id=receipt_id)
        except InvalidTransitionException:
            logger.warning(
                "Rejected %s of receipt %s in status %s",
                action.value,
                receipt_id,
                receipt.status.value,
            )
            raise

        annotation = LifecycleAnnotation(
            action=action,
            actor=actor,
            at=self._clock(),
            reason=reason,
            audit_event_id=audit_event_id,
        )
        # The store re-checks the status under its own lock, so a concurrent
        # transition that won the race surfaces as InvalidTransitionException
        updated = self._store.update(
            tenant_id,
            receipt_id,
            {"status": target, "metadata": merge_metadata(receipt.metadata, annotation)},
            expected_status=receipt.status,
        )
        logger.info(
            "Receipt %s %s -> %s by %s",
            receipt_id,
            receipt.status.value,
            updated.status.value,
            actor,
        )
        return updated


__all__ = ["ReceiptService"]
