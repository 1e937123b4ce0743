"""
CLI command modules.
"""

from receipts_cli.commands import code, public, verify

__all__ = ["code", "public", "verify"]
