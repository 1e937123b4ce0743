"""
CLI Verify Command

Verify an exported receipt offline:
- Recompute the hash over the proof payload and compare with the stored hash
- Optionally check a verification code against the stored hash

Usage:
    proofreceipts verify receipt.json [--code XXXX-XXXX] [--json]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from core.receipts.integrity import compute_receipt_hash, verify_code, verify_hash
from core.receipts.io import ReceiptIOError, load_receipt
from core.schemas.verification import REASON_CODE_MISMATCH, REASON_HASH_MISMATCH

from receipts_cli.commands.exit_codes import (
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    EXIT_VERIFICATION_FAILED,
)


logger = logging.getLogger(__name__)


@dataclass
class VerifySummary:
    """Summary of receipt verification for CLI output."""
    receipt_path: str = ""
    receipt_id: str = ""
    status: str = ""
    hash: str = ""
    verification_code: str = ""
    hash_ok: bool = False
    code_ok: bool | None = None
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["valid"] = self.all_ok
        if self.code_ok is None:
            del d["code_ok"]
        if not d["errors"]:
            del d["errors"]
        return d

    @property
    def all_ok(self) -> bool:
        """Check if all verifications passed."""
        if not self.hash_ok:
            return False
        if self.code_ok is not None and not self.code_ok:
            return False
        return True


def print_summary_human(summary: VerifySummary) -> None:
    """Print summary in human-readable format."""
    print(f"receipt: {summary.receipt_path}")
    print(f"receipt_id: {summary.receipt_id}")
    print(f"status: {summary.status}")
    print(f"hash: {summary.hash}")
    print(f"verification_code: {summary.verification_code}")
    print(f"hash_ok: {str(summary.hash_ok).lower()}")
    if summary.code_ok is not None:
        print(f"code_ok: {str(summary.code_ok).lower()}")
    print(f"valid: {str(summary.all_ok).lower()}")

    if summary.errors:
        print(f"\nerrors ({len(summary.errors)}):")
        for err in summary.errors:
            print(f"  ✗ {err}")


def print_summary_json(summary: VerifySummary) -> None:
    """Print summary as JSON."""
    print(json.dumps(summary.to_dict(), indent=2))


def verify_cmd(args: Namespace) -> int:
    """
    Execute the verify command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code
    """
    receipt_path = Path(args.receipt_path)

    try:
        receipt = load_receipt(receipt_path)
    except ReceiptIOError as e:
        print(f"Error loading receipt: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    summary = VerifySummary(
        receipt_path=str(receipt_path),
        receipt_id=receipt.receipt_id,
        status=receipt.status.value,
        hash=receipt.hash,
        verification_code=receipt.verification_code,
        hash_ok=verify_hash(receipt),
    )
    if not summary.hash_ok:
        summary.errors.append(
            f"{REASON_HASH_MISMATCH}: computed {compute_receipt_hash(receipt)}"
        )

    if args.code:
        summary.code_ok = verify_code(receipt, args.code)
        if not summary.code_ok:
            summary.errors.append(f"{REASON_CODE_MISMATCH}: {args.code}")

    if args.json:
        print_summary_json(summary)
    else:
        print_summary_human(summary)

    if summary.all_ok:
        logger.info("Verification passed for receipt %s", receipt.receipt_id)
        return EXIT_SUCCESS

    logger.warning("Verification failed for receipt %s", receipt.receipt_id)
    return EXIT_VERIFICATION_FAILED
