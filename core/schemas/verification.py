"""
Module 01 - Schemas & Canonicalization
File: verification.py

Purpose: Standard result format for receipt verification.
Verification outcomes are data, never exceptions: "invalid" is an
expected answer, not an exceptional one.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .receipt import Receipt


# Severity levels for checks
CheckSeverity = Literal["info", "warn", "error"]

# Reason strings for failed verification (stable, machine-comparable)
REASON_NOT_FOUND = "receipt not found"
REASON_HASH_MISMATCH = "hash mismatch"
REASON_CODE_MISMATCH = "verification code mismatch"

# Check identifiers
CHECK_RECEIPT_FOUND = "receipt_found"
CHECK_HASH_MATCH = "hash_match"
CHECK_CODE_MATCH = "code_match"


class CheckResult(BaseModel):
    """
    Result of a single verification check.

    Checks are atomic verification steps that can pass or fail.
    """

    model_config = ConfigDict(extra="forbid")

    check_id: str = Field(
        ...,
        description="Unique identifier for this check",
        min_length=1,
    )
    ok: bool = Field(
        ...,
        description="Whether the check passed",
    )
    severity: CheckSeverity = Field(
        ...,
        description="Severity level of this check",
    )
    message: str = Field(
        ...,
        description="Human-readable message describing the result",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional details about the check",
    )

    @property
    def is_error(self) -> bool:
        """Check if this is an error-level failure."""
        return not self.ok and self.severity == "error"

    @classmethod
    def passed(
        cls,
        check_id: str,
        message: str = "Check passed",
        details: dict[str, Any] | None = None,
    ) -> "CheckResult":
        """Create a passed check result."""
        return cls(
            check_id=check_id,
            ok=True,
            severity="info",
            message=message,
            details=details or {},
        )

    @classmethod
    def failed(
        cls,
        check_id: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> "CheckResult":
        """Create a failed check result."""
        return cls(
            check_id=check_id,
            ok=False,
            severity="error",
            message=message,
            details=details or {},
        )


class ReceiptVerificationResult(BaseModel):
    """
    Outcome of verifying one receipt.

    valid is False for both "does not exist" and "exists but altered";
    reason tells them apart (REASON_NOT_FOUND vs REASON_HASH_MISMATCH).
    receipt is only present when the receipt was found in the tenant's
    namespace.
    """

    model_config = ConfigDict(extra="forbid")

    valid: bool = Field(
        ...,
        description="Overall verification success",
    )
    receipt: Receipt | None = Field(
        default=None,
        description="The receipt that was checked, when found",
    )
    reason: str | None = Field(
        default=None,
        description="Why verification failed",
    )
    checks: list[CheckResult] = Field(
        default_factory=list,
        description="Individual check results",
    )

    @property
    def is_not_found(self) -> bool:
        return self.reason == REASON_NOT_FOUND

    @property
    def is_tampered(self) -> bool:
        return self.reason == REASON_HASH_MISMATCH

    def get_failed_checks(self) -> list[CheckResult]:
        """Get all failed checks."""
        return [check for check in self.checks if not check.ok]

    @classmethod
    def success(
        cls, receipt: Receipt, checks: list[CheckResult] | None = None
    ) -> "ReceiptVerificationResult":
        """Create a successful verification result."""
        return cls(valid=True, receipt=receipt, checks=checks or [])

    @classmethod
    def failure(
        cls,
        reason: str,
        receipt: Receipt | None = None,
        checks: list[CheckResult] | None = None,
    ) -> "ReceiptVerificationResult":
        """Create a failed verification result."""
        return cls(valid=False, receipt=receipt, reason=reason, checks=checks or [])
