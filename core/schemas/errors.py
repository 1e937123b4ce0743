"""
Module 01 - Schemas & Canonicalization
File: errors.py

Purpose: Standard error taxonomy for the receipts core.
Defines both Pydantic models for structured error communication
and Python exceptions for control flow.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across the receipts core."""

    # Schema & Validation Errors
    SCHEMA_VALIDATION_ERROR = "SCHEMA_VALIDATION_ERROR"
    CANONICALIZATION_ERROR = "CANONICALIZATION_ERROR"

    # Storage Errors
    RECEIPT_CONFLICT = "RECEIPT_CONFLICT"
    RECEIPT_NOT_FOUND = "RECEIPT_NOT_FOUND"

    # Lifecycle Errors
    INVALID_TRANSITION = "INVALID_TRANSITION"

    # Verification Outcomes (reported as data, never raised)
    HASH_MISMATCH = "HASH_MISMATCH"
    CODE_MISMATCH = "CODE_MISMATCH"


# =============================================================================
# Pydantic Error Models (Structured Communication)
# =============================================================================

class ReceiptsError(BaseModel):
    """
    Base error model for structured error communication.

    Used to pass errors across boundaries (CLI JSON output, service
    responses) without exceptions.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.SCHEMA_VALIDATION_ERROR],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried",
    )

    def to_exception(self) -> "ReceiptsException":
        """Convert this error model to a raised exception."""
        return ReceiptsException(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class ReceiptsException(Exception):
    """
    Base exception for all receipts core errors.

    Carries structured error information and can be converted
    to/from ReceiptsError models.
    """

    def __init__(
        self,
        message: str,
        code: str = "RECEIPTS_ERROR",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_error_model(self) -> ReceiptsError:
        """Convert this exception to a ReceiptsError model."""
        return ReceiptsError(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class CanonicalizationException(ReceiptsException):
    """Exception raised when canonical serialization fails."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.CANONICALIZATION_ERROR,
            details=details,
            retryable=False,
        )


class SchemaValidationException(ReceiptsException):
    """Exception raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if field_path:
            full_details["field_path"] = field_path
        super().__init__(
            message=message,
            code=ErrorCodes.SCHEMA_VALIDATION_ERROR,
            details=full_details,
            retryable=False,
        )
        self.field_path = field_path


class ConflictException(ReceiptsException):
    """Raised when a receipt id or (tenant, transaction) pair already exists."""

    def __init__(
        self,
        message: str,
        tenant_id: str | None = None,
        receipt_id: str | None = None,
        transaction_id: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if tenant_id:
            details["tenant_id"] = tenant_id
        if receipt_id:
            details["receipt_id"] = receipt_id
        if transaction_id:
            details["transaction_id"] = transaction_id
        super().__init__(
            message=message,
            code=ErrorCodes.RECEIPT_CONFLICT,
            details=details,
            retryable=False,
        )


class NotFoundException(ReceiptsException):
    """Raised by mutating operations that target an absent receipt."""

    def __init__(
        self,
        message: str,
        tenant_id: str | None = None,
        receipt_id: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if tenant_id:
            details["tenant_id"] = tenant_id
        if receipt_id:
            details["receipt_id"] = receipt_id
        super().__init__(
            message=message,
            code=ErrorCodes.RECEIPT_NOT_FOUND,
            details=details,
            retryable=False,
        )


class InvalidTransitionException(ReceiptsException):
    """Raised when a status change is not allowed from the current status."""

    def __init__(
        self,
        message: str,
        current_status: str | None = None,
        action: str | None = None,
        receipt_id: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if current_status:
            details["current_status"] = current_status
        if action:
            details["action"] = action
        if receipt_id:
            details["receipt_id"] = receipt_id
        super().__init__(
            message=message,
            code=ErrorCodes.INVALID_TRANSITION,
            details=details,
            retryable=False,
        )
