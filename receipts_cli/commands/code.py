"""
CLI Code Command

Derive the short verification code from a full receipt hash.

Usage:
    proofreceipts code <sha256-hex>
"""

from __future__ import annotations

import sys
from argparse import Namespace

from core.crypto.hashing import DIGEST_HEX_LENGTH, is_digest_hex
from core.receipts.integrity import derive_verification_code

from receipts_cli.commands.exit_codes import EXIT_RUNTIME_ERROR, EXIT_SUCCESS


def code_cmd(args: Namespace) -> int:
    """Execute the code command."""
    digest = args.digest.strip().lower()
    if not is_digest_hex(digest):
        print(
            f"Error: expected a {DIGEST_HEX_LENGTH}-character hex SHA-256 digest",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    print(derive_verification_code(digest))
    return EXIT_SUCCESS
