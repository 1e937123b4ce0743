"""
Receipts CLI

Command-line interface for offline receipt verification.

Usage:
    python -m receipts_cli verify receipt.json [--code XXXX-XXXX] [--json]
    python -m receipts_cli public receipt.json [--json]
    python -m receipts_cli code <sha256-hex>
"""

__version__ = "0.1.0"
