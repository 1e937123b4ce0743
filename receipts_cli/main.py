"""
Receipts CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m receipts_cli verify <receipt.json> [--code CODE] [--json]
    python -m receipts_cli public <receipt.json> [--json]
    python -m receipts_cli code <sha256-hex>

Environment Variables:
    RECEIPTS_LOG_LEVEL          Log level (default: INFO)
"""

from __future__ import annotations

import argparse
import logging
import sys
import traceback
from typing import Sequence

from core.config import RuntimeConfig
from receipts_cli import __version__
from receipts_cli.commands import code, public, verify
from receipts_cli.commands.exit_codes import EXIT_RUNTIME_ERROR


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="proofreceipts",
        description="Verify tamper-evident transaction receipts offline.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides RECEIPTS_LOG_LEVEL)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Print tracebacks for unexpected errors",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- verify command ---
    verify_parser = subparsers.add_parser(
        "verify",
        help="Verify an exported receipt",
        description="Recompute the receipt hash and optionally check a verification code.",
    )
    verify_parser.add_argument(
        "receipt_path",
        type=str,
        help="Path to a receipt JSON file",
    )
    verify_parser.add_argument(
        "--code",
        type=str,
        default=None,
        help="Verification code to check (XXXX-XXXX, case-insensitive)",
    )
    verify_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON report",
    )
    verify_parser.set_defaults(func=verify.verify_cmd)

    # --- public command ---
    public_parser = subparsers.add_parser(
        "public",
        help="Show the public view of a receipt",
        description="Print only the fields safe for public verification.",
    )
    public_parser.add_argument(
        "receipt_path",
        type=str,
        help="Path to a receipt JSON file",
    )
    public_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output JSON",
    )
    public_parser.set_defaults(func=public.public_cmd)

    # --- code command ---
    code_parser = subparsers.add_parser(
        "code",
        help="Derive a verification code from a hash",
        description="Print the XXXX-XXXX verification code for a SHA-256 hex digest.",
    )
    code_parser.add_argument(
        "digest",
        type=str,
        help="64-character hex SHA-256 digest",
    )
    code_parser.set_defaults(func=code.code_cmd)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=verification failed)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    try:
        config = RuntimeConfig.from_env()
    except ValueError as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    setup_logging(level=args.log_level or config.log_level)

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if args.debug:
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
