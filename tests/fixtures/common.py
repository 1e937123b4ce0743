"""
Common test fixtures shared by all modules.

Provides factory functions for core receipt data structures:
- LineItem payloads
- CreateReceiptInput payloads (the coffee/pastry sale)
- Void / refund payloads
- A deterministic clock and id factory
- A ReceiptService over an in-memory store
"""

from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Any, Optional

from core.config import RuntimeConfig
from core.receipts import InMemoryReceiptStore, ReceiptService


DEFAULT_TENANT = "pos-suite-tenant-123"
OTHER_TENANT = "other-tenant-456"
DEFAULT_TRANSACTION = "sale-txn-001"
DEFAULT_ISSUED_AT = datetime(2026, 10, 18, 9, 30, 0, 123456, tzinfo=timezone.utc)


# =============================================================================
# Payload Factories
# =============================================================================

def make_line_item(
    description: str = "Coffee",
    quantity: Any = 2,
    unit_price: Any = 350,
    total_price: Any = 700,
    metadata: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """Create a line item payload."""
    item: dict[str, Any] = {
        "description": description,
        "quantity": quantity,
        "unit_price": unit_price,
        "total_price": total_price,
    }
    if metadata is not None:
        item["metadata"] = metadata
    return item


def make_create_input(
    tenant_id: str = DEFAULT_TENANT,
    transaction_id: str = DEFAULT_TRANSACTION,
    issued_by: str = "cashier-7",
    line_items: Optional[list[dict[str, Any]]] = None,
    subtotal: Any = 1200,
    tax: Any = 60,
    total: Any = 1260,
    currency: str = "NGN",
    payment_method: str = "card",
    **overrides: Any,
) -> dict[str, Any]:
    """
    Create a receipt input payload.

    Defaults to the reference sale: 2 x Coffee @ 350 and 1 x Pastry @ 500,
    subtotal 1200, tax 60, total 1260 NGN.
    """
    if line_items is None:
        line_items = [
            make_line_item("Coffee", 2, 350, 700),
            make_line_item("Pastry", 1, 500, 500),
        ]
    data: dict[str, Any] = {
        "tenant_id": tenant_id,
        "transaction_id": transaction_id,
        "issued_by": issued_by,
        "line_items": line_items,
        "subtotal": subtotal,
        "tax": tax,
        "total": total,
        "currency": currency,
        "payment_method": payment_method,
    }
    data.update(overrides)
    return data


def make_void_input(
    receipt_id: str,
    tenant_id: str = DEFAULT_TENANT,
    voided_by: str = "manager-1",
    reason: str = "Customer cancelled order",
    **overrides: Any,
) -> dict[str, Any]:
    """Create a void payload."""
    data = {
        "tenant_id": tenant_id,
        "receipt_id": receipt_id,
        "voided_by": voided_by,
        "reason": reason,
    }
    data.update(overrides)
    return data


def make_refund_input(
    receipt_id: str,
    tenant_id: str = DEFAULT_TENANT,
    refunded_by: str = "manager-1",
    reason: str = "Item returned",
    **overrides: Any,
) -> dict[str, Any]:
    """Create a refund payload."""
    data = {
        "tenant_id": tenant_id,
        "receipt_id": receipt_id,
        "refunded_by": refunded_by,
        "reason": reason,
    }
    data.update(overrides)
    return data


# =============================================================================
# Deterministic Collaborators
# =============================================================================

class SteppingClock:
    """Clock that advances by a fixed step on every call."""

    def __init__(
        self,
        start: datetime = DEFAULT_ISSUED_AT,
        step: timedelta = timedelta(seconds=1),
    ) -> None:
        self._current = start
        self._step = step

    def __call__(self) -> datetime:
        now = self._current
        self._current = self._current + self._step
        return now


def make_id_factory(prefix: str = "rcpt") -> Any:
    """Sequential receipt ids: rcpt-0001, rcpt-0002, ..."""
    counter = count(1)
    return lambda: f"{prefix}-{next(counter):04d}"


def make_service(
    store: Optional[InMemoryReceiptStore] = None,
    config: Optional[RuntimeConfig] = None,
    clock: Any = None,
    id_factory: Any = None,
) -> ReceiptService:
    """Create a ReceiptService over an in-memory store."""
    return ReceiptService(
        store if store is not None else InMemoryReceiptStore(),
        config or RuntimeConfig(),
        clock=clock or SteppingClock(),
        id_factory=id_factory,
    )
