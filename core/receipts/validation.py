"""
Receipt Input Validation

Structural and arithmetic validation of caller input before it reaches the
lifecycle manager. Nothing here touches storage; a failure is raised before
any state change.

All failures surface as SchemaValidationException with the dotted path of
the field that failed (e.g. "line_items.0.quantity", "total").
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from core.schemas.errors import SchemaValidationException
from core.schemas.receipt import (
    CreateReceiptInput,
    RefundReceiptInput,
    VoidReceiptInput,
)

from .lifecycle import MetadataKeys


logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

MAX_IDENTIFIER_LENGTH = 255

# Union member tags pydantic appends to error locations for int | float fields
_UNION_TAGS = frozenset({"int", "float"})

# Model-level error types mapped onto the field they concern
_MODEL_ERROR_FIELDS = {
    "totals_mismatch": "total",
}


def _error_path(error: Mapping[str, Any]) -> str:
    loc = [part for part in error.get("loc", ()) if part not in _UNION_TAGS]
    if not loc:
        return _MODEL_ERROR_FIELDS.get(error.get("type", ""), "")
    return ".".join(str(part) for part in loc)


def translate_validation_error(
    exc: PydanticValidationError,
    model_name: str,
) -> SchemaValidationException:
    """
    Convert a pydantic ValidationError into a SchemaValidationException.

    The first failing field becomes field_path; all failures are kept in
    details["errors"].
    """
    errors = exc.errors(include_url=False, include_input=False)
    first = errors[0] if errors else {}
    field_path = _error_path(first) or None
    summary = [
        {"field": _error_path(err), "message": err.get("msg", ""), "type": err.get("type", "")}
        for err in errors
    ]
    message = f"Invalid {model_name}: {first.get('msg', 'validation failed')}"
    if field_path:
        message = f"Invalid {model_name}.{field_path}: {first.get('msg', 'validation failed')}"
    return SchemaValidationException(
        message,
        field_path=field_path,
        details={"errors": summary},
    )


def _validate_model(model: type[ModelT], data: Union[ModelT, Mapping[str, Any]]) -> ModelT:
    # Instances are re-validated: pydantic models do not validate assignment
    raw = data.model_dump() if isinstance(data, BaseModel) else data
    try:
        return model.model_validate(raw)
    except PydanticValidationError as e:
        translated = translate_validation_error(e, model.__name__)
        logger.debug("Rejected %s: %s", model.__name__, translated.message)
        raise translated from e


def validate_create_input(
    data: Union[CreateReceiptInput, Mapping[str, Any]],
) -> CreateReceiptInput:
    """
    Validate input for receipt generation.

    Checks:
    - Required fields present, identifier lengths 1..255
    - Non-empty line items, positive quantities, non-negative prices
    - 3-character currency code (normalized to upper case)
    - subtotal + tax == total exactly
    - Caller metadata does not use keys reserved for lifecycle annotations

    Raises:
        SchemaValidationException: On the first failing field
    """
    validated = _validate_model(CreateReceiptInput, data)

    if validated.metadata:
        clashes = sorted(MetadataKeys.reserved() & set(validated.metadata))
        if clashes:
            raise SchemaValidationException(
                f"Metadata keys are reserved for lifecycle annotations: {', '.join(clashes)}",
                field_path=f"metadata.{clashes[0]}",
                details={"reserved_keys": clashes},
            )

    return validated


def validate_void_input(
    data: Union[VoidReceiptInput, Mapping[str, Any]],
) -> VoidReceiptInput:
    """Validate input for voiding a receipt."""
    return _validate_model(VoidReceiptInput, data)


def validate_refund_input(
    data: Union[RefundReceiptInput, Mapping[str, Any]],
) -> RefundReceiptInput:
    """Validate input for refunding a receipt."""
    return _validate_model(RefundReceiptInput, data)


def validate_identifier(value: Any, field_path: str) -> str:
    """
    Check an identifier is a non-empty string of at most 255 characters.

    Returns the identifier stripped of surrounding whitespace, the same
    normalization the input models apply on creation.
    """
    if not isinstance(value, str) or not value.strip():
        raise SchemaValidationException(
            f"{field_path} must be a non-empty string",
            field_path=field_path,
        )
    value = value.strip()
    if len(value) > MAX_IDENTIFIER_LENGTH:
        raise SchemaValidationException(
            f"{field_path} must be at most {MAX_IDENTIFIER_LENGTH} characters",
            field_path=field_path,
        )
    return value


def validate_tenant_id(tenant_id: Any) -> str:
    return validate_identifier(tenant_id, "tenant_id")


def validate_pagination(limit: Any, offset: Any, max_limit: int) -> tuple[int, int]:
    """
    Check list pagination bounds: 1 <= limit <= max_limit, offset >= 0.

    Raises:
        SchemaValidationException: If either bound is violated
    """
    if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= max_limit:
        raise SchemaValidationException(
            f"limit must be an integer between 1 and {max_limit}",
            field_path="limit",
            details={"limit": limit},
        )
    if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
        raise SchemaValidationException(
            "offset must be a non-negative integer",
            field_path="offset",
            details={"offset": offset},
        )
    return limit, offset


__all__ = [
    "translate_validation_error",
    "validate_create_input",
    "validate_void_input",
    "validate_refund_input",
    "validate_identifier",
    "validate_tenant_id",
    "validate_pagination",
]
