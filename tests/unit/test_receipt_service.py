"""
Receipt Service Tests
Tests for core/receipts/service.py

Tests:
- the issue -> verify -> void flow for a point-of-sale sale
- verification outcomes: valid, not found, tampered, code mismatch
- lifecycle transitions and their metadata annotations
- tenant isolation on every read and write path
- the public view exposes no PII
"""

import logging
import re

import pytest

from core.config import RuntimeConfig, StorageConfig
from core.schemas import (
    CHECK_CODE_MATCH,
    CHECK_HASH_MATCH,
    CHECK_RECEIPT_FOUND,
    PUBLIC_FIELDS,
    REASON_CODE_MISMATCH,
    REASON_HASH_MISMATCH,
    REASON_NOT_FOUND,
    ConflictException,
    InvalidTransitionException,
    NotFoundException,
    PublicReceiptView,
    ReceiptStatus,
    SchemaValidationException,
)

from fixtures import (
    DEFAULT_TENANT,
    DEFAULT_TRANSACTION,
    OTHER_TENANT,
    make_create_input,
    make_refund_input,
    make_service,
    make_void_input,
)


def _tamper(store, receipt, **changes):
    """Mutate the stored copy in place, bypassing the store's update path."""
    stored = store._receipts[(receipt.tenant_id, receipt.receipt_id)]
    for name, value in changes.items():
        setattr(stored, name, value)


class TestPointOfSaleFlow:
    """A cashier issues a receipt, a customer verifies it, a manager voids it."""

    def test_issue_verify_void(self, service):
        receipt = service.generate(make_create_input())

        assert receipt.status == ReceiptStatus.ISSUED
        assert receipt.total == 1260
        assert receipt.currency == "NGN"
        assert re.fullmatch(r"[0-9a-f]{64}", receipt.hash)
        assert re.fullmatch(r"[0-9A-F]{4}-[0-9A-F]{4}", receipt.verification_code)
        assert receipt.verification_code.replace("-", "") == receipt.hash[:8].upper()

        result = service.verify(DEFAULT_TENANT, receipt.receipt_id)
        assert result.valid
        assert result.reason is None
        assert result.receipt == receipt

        view = service.get_public_view(DEFAULT_TENANT, receipt.receipt_id)
        assert (view.total, view.currency, view.status) == (1260, "NGN", ReceiptStatus.ISSUED)

        assert not service.verify(OTHER_TENANT, receipt.receipt_id).valid

        voided = service.void(make_void_input(receipt.receipt_id))
        assert voided.status == ReceiptStatus.VOIDED
        assert voided.hash == receipt.hash
        assert voided.verification_code == receipt.verification_code
        assert voided.metadata["voided_by"] == "manager-1"
        assert voided.metadata["void_reason"] == "Customer cancelled order"

        after = service.verify(DEFAULT_TENANT, receipt.receipt_id)
        assert after.valid
        assert after.receipt.status == ReceiptStatus.VOIDED
        assert after.receipt.hash == receipt.hash

        with pytest.raises(InvalidTransitionException):
            service.void(make_void_input(receipt.receipt_id))


class TestGenerate:
    def test_issued_at_truncated_to_millis(self, issued_receipt):
        assert issued_receipt.issued_at.microsecond == 123000

    def test_uses_id_factory(self, issued_receipt):
        assert issued_receipt.receipt_id == "rcpt-0001"

    def test_default_ids_are_random_hex(self):
        service = make_service()
        first = service.generate(make_create_input(transaction_id="a"))
        second = service.generate(make_create_input(transaction_id="b"))
        assert re.fullmatch(r"[0-9a-f]{32}", first.receipt_id)
        assert first.receipt_id != second.receipt_id

    def test_id_length_follows_config(self):
        config = RuntimeConfig.from_dict({"receipts": {"id_bytes": 8}})
        receipt = make_service(config=config).generate(make_create_input())
        assert len(receipt.receipt_id) == 16

    def test_free_metadata_kept(self, service):
        receipt = service.generate(make_create_input(metadata={"register": "till-3"}))
        assert receipt.metadata == {"register": "till-3"}

    def test_audit_event_id_is_hashed(self):
        plain = make_service().generate(make_create_input())
        linked = make_service().generate(make_create_input(audit_event_id="audit-evt-1"))
        assert plain.hash != linked.hash

    def test_duplicate_transaction_conflicts(self, service, issued_receipt, store):
        with pytest.raises(ConflictException):
            service.generate(make_create_input())
        assert len(store) == 1

    def test_invalid_input_persists_nothing(self, service, store):
        with pytest.raises(SchemaValidationException) as exc_info:
            service.generate(make_create_input(total=9999))
        assert exc_info.value.field_path == "total"
        assert len(store) == 0

    def test_generation_logged(self, service, caplog):
        with caplog.at_level(logging.INFO, logger="core.receipts.service"):
            receipt = service.generate(make_create_input())
        assert receipt.receipt_id in caplog.text


class TestLookup:
    def test_get(self, service, issued_receipt):
        assert service.get(DEFAULT_TENANT, issued_receipt.receipt_id) == issued_receipt

    def test_get_by_transaction(self, service, issued_receipt):
        assert service.get_by_transaction(DEFAULT_TENANT, DEFAULT_TRANSACTION) == issued_receipt

    def test_other_tenant_sees_nothing(self, service, issued_receipt):
        assert service.get(OTHER_TENANT, issued_receipt.receipt_id) is None
        assert service.get_by_transaction(OTHER_TENANT, DEFAULT_TRANSACTION) is None
        assert service.get_public_view(OTHER_TENANT, issued_receipt.receipt_id) is None
        assert service.list(OTHER_TENANT) == []

    def test_blank_tenant_rejected(self, service):
        with pytest.raises(SchemaValidationException):
            service.get("", "rcpt-0001")

    def test_list_uses_configured_default_limit(self, store):
        config = RuntimeConfig(storage=StorageConfig(default_list_limit=2, max_list_limit=10))
        service = make_service(store=store, config=config)
        for i in range(4):
            service.generate(make_create_input(transaction_id=f"sale-{i}"))

        assert len(service.list(DEFAULT_TENANT)) == 2
        assert len(service.list(DEFAULT_TENANT, limit=10)) == 4

        with pytest.raises(SchemaValidationException) as exc_info:
            service.list(DEFAULT_TENANT, limit=11)
        assert exc_info.value.field_path == "limit"

    def test_list_newest_first(self, service):
        first = service.generate(make_create_input(transaction_id="sale-1"))
        second = service.generate(make_create_input(transaction_id="sale-2"))
        assert [r.receipt_id for r in service.list(DEFAULT_TENANT)] == [
            second.receipt_id,
            first.receipt_id,
        ]


class TestVerify:
    def test_idempotent(self, service, issued_receipt):
        first = service.verify(DEFAULT_TENANT, issued_receipt.receipt_id)
        second = service.verify(DEFAULT_TENANT, issued_receipt.receipt_id)
        assert first == second
        assert [c.check_id for c in first.checks] == [CHECK_RECEIPT_FOUND, CHECK_HASH_MATCH]

    def test_not_found(self, service):
        result = service.verify(DEFAULT_TENANT, "missing")
        assert not result.valid
        assert result.reason == REASON_NOT_FOUND
        assert result.is_not_found
        assert result.receipt is None

    def test_other_tenant_is_not_found(self, service, issued_receipt):
        result = service.verify(OTHER_TENANT, issued_receipt.receipt_id)
        assert result.reason == REASON_NOT_FOUND

    def test_tampered_total_detected(self, service, store, issued_receipt):
        _tamper(store, issued_receipt, total=1)

        result = service.verify(DEFAULT_TENANT, issued_receipt.receipt_id)
        assert not result.valid
        assert result.reason == REASON_HASH_MISMATCH
        assert result.is_tampered
        assert result.receipt.total == 1

        failed = result.get_failed_checks()
        assert [c.check_id for c in failed] == [CHECK_HASH_MATCH]
        assert failed[0].details["stored_hash"] == issued_receipt.hash
        assert failed[0].details["computed_hash"] != issued_receipt.hash

    def test_tamper_logged_as_warning(self, service, store, issued_receipt, caplog):
        _tamper(store, issued_receipt, payment_method="cash")
        with caplog.at_level(logging.WARNING, logger="core.receipts.service"):
            service.verify(DEFAULT_TENANT, issued_receipt.receipt_id)
        assert any(r.levelno == logging.WARNING for r in caplog.records)

    def test_status_and_metadata_changes_are_not_tampering(self, service, store, issued_receipt):
        _tamper(store, issued_receipt, status=ReceiptStatus.REFUNDED, metadata={"x": 1})
        assert service.verify(DEFAULT_TENANT, issued_receipt.receipt_id).valid


class TestVerifyByCode:
    def test_matching_code(self, service, issued_receipt):
        result = service.verify_by_code(
            DEFAULT_TENANT, issued_receipt.receipt_id, issued_receipt.verification_code.lower()
        )
        assert result.valid
        assert result.checks[-1].check_id == CHECK_CODE_MATCH

    def test_wrong_code(self, service, issued_receipt):
        wrong = "0000-0000" if issued_receipt.verification_code != "0000-0000" else "FFFF-FFFF"
        result = service.verify_by_code(DEFAULT_TENANT, issued_receipt.receipt_id, wrong)
        assert not result.valid
        assert result.reason == REASON_CODE_MISMATCH

    def test_not_found(self, service, issued_receipt):
        result = service.verify_by_code(
            OTHER_TENANT, issued_receipt.receipt_id, issued_receipt.verification_code
        )
        assert result.reason == REASON_NOT_FOUND

    def test_checks_stored_digest_only(self, service, store, issued_receipt):
        _tamper(store, issued_receipt, total=1)
        by_code = service.verify_by_code(
            DEFAULT_TENANT, issued_receipt.receipt_id, issued_receipt.verification_code
        )
        assert by_code.valid
        assert not service.verify(DEFAULT_TENANT, issued_receipt.receipt_id).valid


class TestPublicView:
    def test_only_public_fields(self, service, issued_receipt):
        view = service.get_public_view(DEFAULT_TENANT, issued_receipt.receipt_id)
        assert isinstance(view, PublicReceiptView)
        assert set(view.model_dump()) == set(PUBLIC_FIELDS)

    def test_no_pii_in_serialized_view(self, service):
        receipt = service.generate(
            make_create_input(metadata={"customer_email": "ada@example.com"})
        )
        dumped = service.get_public_view(DEFAULT_TENANT, receipt.receipt_id).model_dump_json()
        for secret in (
            DEFAULT_TENANT,
            DEFAULT_TRANSACTION,
            "cashier-7",
            "Coffee",
            "card",
            "ada@example.com",
        ):
            assert secret not in dumped

    def test_values(self, service, issued_receipt):
        view = service.get_public_view(DEFAULT_TENANT, issued_receipt.receipt_id)
        assert view.receipt_id == issued_receipt.receipt_id
        assert view.verification_code == issued_receipt.verification_code
        assert view.total == 1260
        assert view.currency == "NGN"
        assert view.status == ReceiptStatus.ISSUED
        assert view.hash == issued_receipt.hash

    def test_missing(self, service):
        assert service.get_public_view(DEFAULT_TENANT, "missing") is None


class TestLifecycle:
    def test_refund(self, service, issued_receipt):
        refunded = service.refund(
            make_refund_input(issued_receipt.receipt_id, audit_event_id="audit-evt-5")
        )
        assert refunded.status == ReceiptStatus.REFUNDED
        assert refunded.metadata["refunded_by"] == "manager-1"
        assert refunded.metadata["refund_reason"] == "Item returned"
        assert refunded.metadata["refund_audit_event_id"] == "audit-evt-5"
        assert refunded.metadata["refunded_at"].endswith("Z")

    def test_transition_leaves_proof_untouched(self, service, issued_receipt):
        refunded = service.refund(make_refund_input(issued_receipt.receipt_id))
        assert refunded.proof_payload() == issued_receipt.proof_payload()
        assert refunded.hash == issued_receipt.hash

    def test_existing_metadata_preserved(self, service):
        receipt = service.generate(make_create_input(metadata={"register": "till-3"}))
        voided = service.void(make_void_input(receipt.receipt_id))
        assert voided.metadata["register"] == "till-3"
        assert voided.metadata["voided_by"] == "manager-1"

    def test_void_twice_rejected(self, service, issued_receipt):
        service.void(make_void_input(issued_receipt.receipt_id))
        with pytest.raises(InvalidTransitionException) as exc_info:
            service.void(make_void_input(issued_receipt.receipt_id, voided_by="manager-2"))

        assert "voided" in exc_info.value.message
        stored = service.get(DEFAULT_TENANT, issued_receipt.receipt_id)
        assert stored.metadata["voided_by"] == "manager-1"

    def test_refund_after_void_rejected(self, service, issued_receipt):
        service.void(make_void_input(issued_receipt.receipt_id))
        with pytest.raises(InvalidTransitionException):
            service.refund(make_refund_input(issued_receipt.receipt_id))
        assert service.get(DEFAULT_TENANT, issued_receipt.receipt_id).status == ReceiptStatus.VOIDED

    def test_void_after_refund_rejected(self, service, issued_receipt):
        service.refund(make_refund_input(issued_receipt.receipt_id))
        with pytest.raises(InvalidTransitionException):
            service.void(make_void_input(issued_receipt.receipt_id))

    def test_void_missing_receipt(self, service):
        with pytest.raises(NotFoundException):
            service.void(make_void_input("missing"))

    def test_void_other_tenant(self, service, issued_receipt):
        with pytest.raises(NotFoundException):
            service.void(make_void_input(issued_receipt.receipt_id, tenant_id=OTHER_TENANT))
        assert service.get(DEFAULT_TENANT, issued_receipt.receipt_id).status == ReceiptStatus.ISSUED

    def test_invalid_void_input(self, service, issued_receipt):
        with pytest.raises(SchemaValidationException):
            service.void(make_void_input(issued_receipt.receipt_id, reason=""))


class TestTenantIsolation:
    """Tenant ids containing ":" must not reach into another tenant's receipts."""

    @pytest.fixture
    def victim(self, service):
        return service.generate(make_create_input(tenant_id="acme:shop", transaction_id="t1"))

    def test_get_and_verify_miss(self, service, victim):
        aliased_id = f"shop:{victim.receipt_id}"

        assert service.get("acme", aliased_id) is None
        assert service.get_by_transaction("acme", "shop:t1") is None
        assert service.get_public_view("acme", aliased_id) is None

        result = service.verify("acme", aliased_id)
        assert not result.valid
        assert result.reason == REASON_NOT_FOUND

    def test_void_and_refund_rejected(self, service, victim):
        aliased_id = f"shop:{victim.receipt_id}"

        with pytest.raises(NotFoundException):
            service.void(make_void_input(aliased_id, tenant_id="acme", voided_by="mallory"))
        with pytest.raises(NotFoundException):
            service.refund(make_refund_input(aliased_id, tenant_id="acme"))

        stored = service.get("acme:shop", victim.receipt_id)
        assert stored.status == ReceiptStatus.ISSUED
        assert "voided_by" not in stored.metadata

    def test_transaction_uniqueness_is_per_tenant(self, service, victim):
        receipt = service.generate(make_create_input(tenant_id="acme", transaction_id="shop:t1"))
        assert receipt.tenant_id == "acme"
        assert service.get_by_transaction("acme:shop", "t1") == victim


class TestIdentifierNormalization:
    """Lookups strip whitespace the same way generation does."""

    def test_padded_tenant_id_finds_receipt(self, service):
        receipt = service.generate(make_create_input(tenant_id="  t  ", transaction_id=" sale-1 "))
        assert receipt.tenant_id == "t"
        assert receipt.transaction_id == "sale-1"

        assert service.get(" t ", receipt.receipt_id) == receipt
        assert service.get("t", f" {receipt.receipt_id} ") == receipt
        assert service.get_by_transaction(" t ", " sale-1 ") == receipt
        assert service.list(" t ") == [receipt]
        assert service.verify(" t ", receipt.receipt_id).valid
