"""
Receipt Export & Import

Save and load a single receipt as JSON so it can be verified offline
(see receipts_cli verify).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from core.schemas.receipt import Receipt


class ReceiptIOError(Exception):
    """Error during receipt file IO."""
    pass


def dump_receipt_json(receipt: Receipt, *, indent: int | None = 2) -> str:
    """Serialize a receipt (all fields, including status and metadata) to JSON."""
    return receipt.model_dump_json(indent=indent)


def save_receipt(receipt: Receipt, path: str | Path) -> Path:
    """
    Write a receipt to a JSON file, creating parent directories.

    Returns:
        The path written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_receipt_json(receipt), encoding="utf-8")
    return path


def parse_receipt(data: Any) -> Receipt:
    """
    Build a Receipt from parsed JSON data.

    Raises:
        ReceiptIOError: If the data is not a well-formed receipt
    """
    try:
        return Receipt.model_validate(data)
    except PydanticValidationError as e:
        raise ReceiptIOError(f"Not a valid receipt: {e.error_count()} validation error(s)") from e


def load_receipt(path: str | Path) -> Receipt:
    """
    Load a receipt from a JSON file.

    Raises:
        ReceiptIOError: If the file is missing, not JSON, or not a receipt
    """
    path = Path(path)
    if not path.is_file():
        raise ReceiptIOError(f"Receipt file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise ReceiptIOError(f"Cannot read receipt file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ReceiptIOError(f"Receipt file is not valid JSON: {path}: {e}") from e
    return parse_receipt(data)


__all__ = [
    "ReceiptIOError",
    "dump_receipt_json",
    "save_receipt",
    "parse_receipt",
    "load_receipt",
]
