"""
Runtime Configuration Module

Provides configuration loading and management for the receipts core.
"""

from .runtime import (
    RuntimeConfig,
    ReceiptConfig,
    StorageConfig,
    get_default_config,
    set_default_config,
)

__all__ = [
    "RuntimeConfig",
    "ReceiptConfig",
    "StorageConfig",
    "get_default_config",
    "set_default_config",
]
