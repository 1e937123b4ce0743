"""
Module 01 - Schemas & Canonicalization
File: receipt.py

Purpose: Receipt data model, caller inputs and the public (PII-free) view.

Field groups:
- Identity: receipt_id, tenant_id, transaction_id
- Proof payload (immutable, hashed): issued_at, issued_by, line_items,
  subtotal, tax, total, currency, payment_method, audit_event_id
- Tamper evidence (immutable, derived): hash, verification_code
- Lifecycle (mutable, never hashed): status, metadata
"""

import math
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic_core import PydanticCustomError


def _non_negative(value: Union[int, float]) -> Union[int, float]:
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError("must be a finite number")
    if value < 0:
        raise ValueError("must be greater than or equal to 0")
    return value


def _positive(value: Union[int, float]) -> Union[int, float]:
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError("must be a finite number")
    if value <= 0:
        raise ValueError("must be greater than 0")
    return value


# Monetary and quantity values are JSON numbers; ints stay ints so the
# canonical form of 1260 is "1260", not "1260.0".
NonNegativeAmount = Annotated[Union[int, float], AfterValidator(_non_negative)]
PositiveAmount = Annotated[Union[int, float], AfterValidator(_positive)]

IdentifierStr = Annotated[str, Field(min_length=1, max_length=255)]
ReasonStr = Annotated[str, Field(min_length=1, max_length=500)]

# Fields hashed into Receipt.hash, in documentation order
HASH_FIELDS: tuple[str, ...] = (
    "receipt_id",
    "tenant_id",
    "transaction_id",
    "issued_at",
    "issued_by",
    "line_items",
    "subtotal",
    "tax",
    "total",
    "currency",
    "payment_method",
    "audit_event_id",
)

# Fields that never change after creation
IMMUTABLE_FIELDS: tuple[str, ...] = HASH_FIELDS + ("hash", "verification_code")

# The only fields a lifecycle update may touch
MUTABLE_FIELDS: tuple[str, ...] = ("status", "metadata")

# Fields allowed in the public view
PUBLIC_FIELDS: tuple[str, ...] = (
    "receipt_id",
    "verification_code",
    "issued_at",
    "total",
    "currency",
    "status",
    "hash",
)


class ReceiptStatus(str, Enum):
    """Lifecycle status. ISSUED is initial; VOIDED and REFUNDED are terminal."""

    ISSUED = "issued"
    VOIDED = "voided"
    REFUNDED = "refunded"


def amounts_balance(subtotal: Any, tax: Any, total: Any) -> bool:
    """
    Exact check that subtotal + tax == total.

    Values are compared in decimal arithmetic over their shortest textual
    form, so 0.1 + 0.2 balances 0.3 while 1200 + 60 does not balance 1261.
    """
    return Decimal(str(subtotal)) + Decimal(str(tax)) == Decimal(str(total))


class LineItem(BaseModel):
    """A single line of a receipt. Line order is significant."""

    model_config = ConfigDict(extra="forbid")

    description: str = Field(
        ...,
        description="What was sold",
        min_length=1,
        max_length=500,
    )
    quantity: PositiveAmount = Field(
        ...,
        description="Quantity sold (must be positive)",
    )
    unit_price: NonNegativeAmount = Field(
        ...,
        description="Price per unit in minor or major currency units",
    )
    total_price: NonNegativeAmount = Field(
        ...,
        description="Line total",
    )
    metadata: dict[str, Any] | None = Field(
        default=None,
        description="Optional per-line annotations (hashed with the line)",
    )


class Receipt(BaseModel):
    """
    Tamper-evident record of one transaction.

    hash covers the proof payload only (see HASH_FIELDS); status and metadata
    change over the receipt's life and are deliberately outside it.
    """

    model_config = ConfigDict(extra="forbid")

    receipt_id: str = Field(..., description="Opaque unique identifier", min_length=1)
    tenant_id: str = Field(..., description="Isolation boundary", min_length=1)
    transaction_id: str = Field(..., description="Unique per tenant", min_length=1)
    status: ReceiptStatus = Field(
        default=ReceiptStatus.ISSUED,
        description="Lifecycle status",
    )
    issued_at: datetime = Field(..., description="Issuance instant (UTC)")
    issued_by: str = Field(..., description="Actor that issued the receipt")
    line_items: list[LineItem] = Field(..., min_length=1)
    subtotal: NonNegativeAmount
    tax: NonNegativeAmount
    total: NonNegativeAmount
    currency: str = Field(..., min_length=3, max_length=3)
    payment_method: str = Field(..., description="e.g. cash, card, transfer")
    audit_event_id: str | None = Field(
        default=None,
        description="Optional link to an external audit event",
    )
    hash: str = Field(..., description="SHA-256 of the proof payload (lowercase hex)")
    verification_code: str = Field(..., description="Short code, XXXX-XXXX")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Lifecycle annotations (not hashed)",
    )

    def proof_payload(self) -> dict[str, Any]:
        """Return the hashed field subset of this receipt."""
        return {name: getattr(self, name) for name in HASH_FIELDS}

    def to_public_view(self) -> "PublicReceiptView":
        """Project this receipt onto the public, PII-free view."""
        return PublicReceiptView(**{name: getattr(self, name) for name in PUBLIC_FIELDS})


class PublicReceiptView(BaseModel):
    """
    PII boundary for external verification.

    Only the fields listed here may appear in a public response; tenant,
    issuer, line items, transaction id, payment method, audit linkage and
    metadata are never exposed.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    receipt_id: str
    verification_code: str
    issued_at: datetime
    total: NonNegativeAmount
    currency: str
    status: ReceiptStatus
    hash: str


# =============================================================================
# Caller Inputs
# =============================================================================

class CreateReceiptInput(BaseModel):
    """Input to ReceiptService.generate."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    tenant_id: IdentifierStr
    transaction_id: IdentifierStr
    issued_by: IdentifierStr
    line_items: list[LineItem] = Field(..., min_length=1)
    subtotal: NonNegativeAmount
    tax: NonNegativeAmount
    total: NonNegativeAmount
    currency: str = Field(..., min_length=3, max_length=3)
    payment_method: str = Field(..., min_length=1, max_length=100)
    audit_event_id: str | None = Field(default=None, min_length=1, max_length=255)
    metadata: dict[str, Any] | None = None

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def validate_totals(self) -> "CreateReceiptInput":
        """Ensure total equals subtotal + tax exactly."""
        if not amounts_balance(self.subtotal, self.tax, self.total):
            raise PydanticCustomError(
                "totals_mismatch",
                "total ({total}) must equal subtotal ({subtotal}) + tax ({tax})",
                {"total": self.total, "subtotal": self.subtotal, "tax": self.tax},
            )
        return self


class VoidReceiptInput(BaseModel):
    """Input to ReceiptService.void."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    tenant_id: IdentifierStr
    receipt_id: IdentifierStr
    voided_by: IdentifierStr
    reason: ReasonStr
    audit_event_id: str | None = Field(default=None, min_length=1, max_length=255)


class RefundReceiptInput(BaseModel):
    """Input to ReceiptService.refund."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    tenant_id: IdentifierStr
    receipt_id: IdentifierStr
    refunded_by: IdentifierStr
    reason: ReasonStr
    audit_event_id: str | None = Field(default=None, min_length=1, max_length=255)
