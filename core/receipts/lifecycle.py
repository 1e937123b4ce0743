"""
Receipt Lifecycle

Closed state machine for receipt status and the reserved metadata keys
written by lifecycle actions.

States: ISSUED (initial), VOIDED, REFUNDED (terminal).
Transitions: ISSUED --void--> VOIDED, ISSUED --refund--> REFUNDED.
Every other (status, action) pair is rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from core.schemas.canonical import format_datetime_canonical
from core.schemas.errors import InvalidTransitionException
from core.schemas.receipt import ReceiptStatus


class LifecycleAction(str, Enum):
    VOID = "void"
    REFUND = "refund"


# Complete table: every (status, action) pair has an entry; None means rejected
TRANSITIONS: dict[tuple[ReceiptStatus, LifecycleAction], Optional[ReceiptStatus]] = {
    (ReceiptStatus.ISSUED, LifecycleAction.VOID): ReceiptStatus.VOIDED,
    (ReceiptStatus.ISSUED, LifecycleAction.REFUND): ReceiptStatus.REFUNDED,
    (ReceiptStatus.VOIDED, LifecycleAction.VOID): None,
    (ReceiptStatus.VOIDED, LifecycleAction.REFUND): None,
    (ReceiptStatus.REFUNDED, LifecycleAction.VOID): None,
    (ReceiptStatus.REFUNDED, LifecycleAction.REFUND): None,
}


def next_status(status: ReceiptStatus, action: LifecycleAction) -> Optional[ReceiptStatus]:
    """Target status for an action, or None when the transition is not allowed."""
    return TRANSITIONS[(ReceiptStatus(status), LifecycleAction(action))]


def transition(
    status: ReceiptStatus,
    action: LifecycleAction,
    receipt_id: str | None = None,
) -> ReceiptStatus:
    """
    Apply an action to a status.

    Raises:
        InvalidTransitionException: If the action is not allowed from status
    """
    target = next_status(status, action)
    if target is None:
        status_value = ReceiptStatus(status).value
        action_value = LifecycleAction(action).value
        raise InvalidTransitionException(
            f"Cannot {action_value} receipt with status: {status_value}",
            current_status=status_value,
            action=action_value,
            receipt_id=receipt_id,
        )
    return target


class MetadataKeys:
    """Reserved metadata keys written by void and refund."""

    VOIDED_BY = "voided_by"
    VOIDED_AT = "voided_at"
    VOID_REASON = "void_reason"
    VOID_AUDIT_EVENT_ID = "void_audit_event_id"

    REFUNDED_BY = "refunded_by"
    REFUNDED_AT = "refunded_at"
    REFUND_REASON = "refund_reason"
    REFUND_AUDIT_EVENT_ID = "refund_audit_event_id"

    @classmethod
    def reserved(cls) -> frozenset[str]:
        return frozenset(
            value
            for name, value in vars(cls).items()
            if name.isupper() and isinstance(value, str)
        )


_ACTION_KEYS: dict[LifecycleAction, tuple[str, str, str, str]] = {
    LifecycleAction.VOID: (
        MetadataKeys.VOIDED_BY,
        MetadataKeys.VOIDED_AT,
        MetadataKeys.VOID_REASON,
        MetadataKeys.VOID_AUDIT_EVENT_ID,
    ),
    LifecycleAction.REFUND: (
        MetadataKeys.REFUNDED_BY,
        MetadataKeys.REFUNDED_AT,
        MetadataKeys.REFUND_REASON,
        MetadataKeys.REFUND_AUDIT_EVENT_ID,
    ),
}


@dataclass(frozen=True)
class LifecycleAnnotation:
    """Who changed a receipt's status, when, why, and the linked audit event."""

    action: LifecycleAction
    actor: str
    at: datetime
    reason: str
    audit_event_id: Optional[str] = None

    def to_metadata(self) -> dict[str, Any]:
        """Render as reserved metadata entries; absent audit linkage is omitted."""
        by_key, at_key, reason_key, audit_key = _ACTION_KEYS[self.action]
        entries: dict[str, Any] = {
            by_key: self.actor,
            at_key: format_datetime_canonical(self.at),
            reason_key: self.reason,
        }
        if self.audit_event_id is not None:
            entries[audit_key] = self.audit_event_id
        return entries


def merge_metadata(
    existing: dict[str, Any] | None,
    annotation: LifecycleAnnotation,
) -> dict[str, Any]:
    """Merge an annotation over existing metadata without dropping other keys."""
    merged = dict(existing or {})
    merged.update(annotation.to_metadata())
    return merged


__all__ = [
    "LifecycleAction",
    "TRANSITIONS",
    "next_status",
    "transition",
    "MetadataKeys",
    "LifecycleAnnotation",
    "merge_metadata",
]
