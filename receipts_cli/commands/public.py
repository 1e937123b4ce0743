"""
CLI Public Command

Print the public (PII-free) view of an exported receipt.

Usage:
    proofreceipts public receipt.json [--json]
"""

from __future__ import annotations

import json
import sys
from argparse import Namespace
from pathlib import Path

from core.receipts.io import ReceiptIOError, load_receipt

from receipts_cli.commands.exit_codes import EXIT_RUNTIME_ERROR, EXIT_SUCCESS


def public_cmd(args: Namespace) -> int:
    """Execute the public command."""
    try:
        receipt = load_receipt(Path(args.receipt_path))
    except ReceiptIOError as e:
        print(f"Error loading receipt: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    view = receipt.to_public_view().model_dump(mode="json")

    if args.json:
        print(json.dumps(view, indent=2))
    else:
        for key, value in view.items():
            print(f"{key}: {value}")
    return EXIT_SUCCESS
