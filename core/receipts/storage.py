"""
Receipt Storage

Storage contract required by the lifecycle manager, plus a thread-safe
in-memory reference implementation.

Contract:
- create rejects a colliding receipt id or (tenant_id, transaction_id)
  pair atomically with the insert
- get / get_by_transaction are tenant scoped and return None when absent
- update only changes status and metadata; every immutable field is
  re-pinned from the stored receipt after merging
- update(expected_status=...) compares and writes in one step
- list orders by issued_at descending, then slices offset/limit
"""

from __future__ import annotations

import itertools
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from core.schemas.errors import (
    ConflictException,
    InvalidTransitionException,
    NotFoundException,
    SchemaValidationException,
)
from core.schemas.receipt import IMMUTABLE_FIELDS, MUTABLE_FIELDS, Receipt, ReceiptStatus

from .validation import translate_validation_error


logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 100


class ReceiptStore(ABC):
    """
    Abstract storage contract for receipts.

    Production backends must provide create and update(expected_status=...)
    as single transactional or compare-and-set operations.
    """

    @abstractmethod
    def create(self, receipt: Receipt) -> Receipt:
        """
        Persist a new receipt.

        Raises:
            ConflictException: If the receipt id or the tenant's
                transaction id already exists
        """
        ...

    @abstractmethod
    def get(self, tenant_id: str, receipt_id: str) -> Optional[Receipt]:
        """Fetch a receipt within a tenant's namespace."""
        ...

    @abstractmethod
    def get_by_transaction(self, tenant_id: str, transaction_id: str) -> Optional[Receipt]:
        """Fetch a receipt via the tenant's transaction index."""
        ...

    @abstractmethod
    def update(
        self,
        tenant_id: str,
        receipt_id: str,
        changes: Mapping[str, Any],
        *,
        expected_status: Optional[ReceiptStatus] = None,
    ) -> Receipt:
        """
        Apply a partial update.

        Raises:
            NotFoundException: If the receipt is absent
            InvalidTransitionException: If expected_status is given and the
                stored status differs
            SchemaValidationException: If changes name an unknown field or
                carry an invalid status or metadata value
        """
        ...

    @abstractmethod
    def list(self, tenant_id: str, limit: int = DEFAULT_LIST_LIMIT, offset: int = 0) -> list[Receipt]:
        """List a tenant's receipts, most recently issued first."""
        ...


_Key = tuple[str, str]


def _receipt_key(tenant_id: str, receipt_id: str) -> _Key:
    return (tenant_id, receipt_id)


def _transaction_key(tenant_id: str, transaction_id: str) -> _Key:
    return (tenant_id, transaction_id)


def apply_update(existing: Receipt, changes: Mapping[str, Any]) -> Receipt:
    """
    Merge changes over a stored receipt and re-pin immutable fields.

    Only MUTABLE_FIELDS are taken from changes; identity, proof payload,
    hash and verification code come back verbatim from the existing receipt.

    Raises:
        SchemaValidationException: If changes name a field Receipt does not
            have, or a mutable field gets an invalid value
    """
    unknown = sorted(set(changes) - set(Receipt.model_fields))
    if unknown:
        raise SchemaValidationException(
            f"Unknown receipt fields in update: {', '.join(unknown)}",
            field_path=unknown[0],
            details={"unknown_fields": unknown},
        )

    merged = existing.model_dump()
    merged.update({name: changes[name] for name in MUTABLE_FIELDS if name in changes})
    for name in IMMUTABLE_FIELDS:
        merged[name] = getattr(existing, name)
    try:
        return Receipt.model_validate(merged)
    except PydanticValidationError as e:
        raise translate_validation_error(e, "Receipt") from e


class InMemoryReceiptStore(ReceiptStore):
    """
    Reference store keyed by (tenant_id, receipt_id) with a secondary
    (tenant_id, transaction_id) index. Tuple keys keep tenant namespaces
    disjoint whatever characters the ids contain.

    Receipts are copied on the way in and out; callers never hold a
    reference to stored state.
    """

    def __init__(self) -> None:
        self._receipts: dict[_Key, Receipt] = {}
        self._transaction_index: dict[_Key, str] = {}
        self._receipt_ids: set[str] = set()
        self._sequence: dict[_Key, int] = {}
        self._counter = itertools.count()
        self._lock = threading.RLock()

    def create(self, receipt: Receipt) -> Receipt:
        key = _receipt_key(receipt.tenant_id, receipt.receipt_id)
        tx_key = _transaction_key(receipt.tenant_id, receipt.transaction_id)

        with self._lock:
            if key in self._receipts or receipt.receipt_id in self._receipt_ids:
                raise ConflictException(
                    f"Receipt already exists: {receipt.receipt_id}",
                    tenant_id=receipt.tenant_id,
                    receipt_id=receipt.receipt_id,
                )
            if tx_key in self._transaction_index:
                raise ConflictException(
                    f"Receipt already exists for transaction: {receipt.transaction_id}",
                    tenant_id=receipt.tenant_id,
                    transaction_id=receipt.transaction_id,
                )

            stored = receipt.model_copy(deep=True)
            self._receipts[key] = stored
            self._transaction_index[tx_key] = receipt.receipt_id
            self._receipt_ids.add(receipt.receipt_id)
            self._sequence[key] = next(self._counter)

        logger.debug("Stored receipt %s for tenant %s", receipt.receipt_id, receipt.tenant_id)
        return stored.model_copy(deep=True)

    def get(self, tenant_id: str, receipt_id: str) -> Optional[Receipt]:
        with self._lock:
            stored = self._receipts.get(_receipt_key(tenant_id, receipt_id))
            return stored.model_copy(deep=True) if stored is not None else None

    def get_by_transaction(self, tenant_id: str, transaction_id: str) -> Optional[Receipt]:
        with self._lock:
            receipt_id = self._transaction_index.get(_transaction_key(tenant_id, transaction_id))
            if receipt_id is None:
                return None
            return self.get(tenant_id, receipt_id)

    def update(
        self,
        tenant_id: str,
        receipt_id: str,
        changes: Mapping[str, Any],
        *,
        expected_status: Optional[ReceiptStatus] = None,
    ) -> Receipt:
        key = _receipt_key(tenant_id, receipt_id)

        with self._lock:
            existing = self._receipts.get(key)
            if existing is None:
                raise NotFoundException(
                    f"Receipt not found: {receipt_id}",
                    tenant_id=tenant_id,
                    receipt_id=receipt_id,
                )
            if expected_status is not None and existing.status != expected_status:
                raise InvalidTransitionException(
                    f"Receipt status changed concurrently: expected "
                    f"{ReceiptStatus(expected_status).value}, found {existing.status.value}",
                    current_status=existing.status.value,
                    receipt_id=receipt_id,
                )

            updated = apply_update(existing, changes)
            self._receipts[key] = updated

        return updated.model_copy(deep=True)

    def list(self, tenant_id: str, limit: int = DEFAULT_LIST_LIMIT, offset: int = 0) -> list[Receipt]:
        with self._lock:
            entries = [
                (receipt.issued_at, self._sequence[key], receipt)
                for key, receipt in self._receipts.items()
                if key[0] == tenant_id
            ]
        entries.sort(key=lambda entry: (entry[0], entry[1]), reverse=True)
        return [receipt.model_copy(deep=True) for _, _, receipt in entries[offset:offset + limit]]

    def __len__(self) -> int:
        with self._lock:
            return len(self._receipts)


__all__ = [
    "DEFAULT_LIST_LIMIT",
    "ReceiptStore",
    "InMemoryReceiptStore",
    "apply_update",
]
