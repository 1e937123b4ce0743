"""
Runtime Configuration

Central configuration for the receipts core: identifier generation,
list pagination bounds and logging.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from typing import Any, Optional

from dotenv import load_dotenv

load_dotenv()


# Environment variable prefix
ENV_PREFIX = "RECEIPTS_"


@dataclass
class ReceiptConfig:
    """Configuration for receipt issuance."""
    # Random bytes per receipt id (rendered as 2 * id_bytes hex chars)
    id_bytes: int = 16


@dataclass
class StorageConfig:
    """Configuration for list pagination."""
    default_list_limit: int = 100
    max_list_limit: int = 1000


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration for the receipts core.

    Can be loaded from:
    - Environment variables (optionally via a .env file)
    - A dictionary
    - Programmatic construction
    """
    receipts: ReceiptConfig = field(default_factory=ReceiptConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    log_level: str = "INFO"
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        Supported variables:
        - RECEIPTS_ID_BYTES: random bytes per receipt id
        - RECEIPTS_DEFAULT_LIST_LIMIT: default page size for list
        - RECEIPTS_MAX_LIST_LIMIT: largest page size list accepts
        - RECEIPTS_LOG_LEVEL: log level name
        """
        overrides: dict[str, Any] = {}

        if os.getenv(f"{ENV_PREFIX}ID_BYTES"):
            overrides.setdefault("receipts", {})["id_bytes"] = int(
                os.getenv(f"{ENV_PREFIX}ID_BYTES", "16")
            )

        if os.getenv(f"{ENV_PREFIX}DEFAULT_LIST_LIMIT"):
            overrides.setdefault("storage", {})["default_list_limit"] = int(
                os.getenv(f"{ENV_PREFIX}DEFAULT_LIST_LIMIT", "100")
            )
        if os.getenv(f"{ENV_PREFIX}MAX_LIST_LIMIT"):
            overrides.setdefault("storage", {})["max_list_limit"] = int(
                os.getenv(f"{ENV_PREFIX}MAX_LIST_LIMIT", "1000")
            )

        if os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
            overrides["log_level"] = os.getenv(f"{ENV_PREFIX}LOG_LEVEL", "INFO").upper()

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """
        Load configuration purely from environment variables.

        Uses defaults for any values not specified in env vars.
        """
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        receipts_data = data.get("receipts", {})
        storage_data = data.get("storage", {})

        receipts = ReceiptConfig(**receipts_data) if receipts_data else ReceiptConfig()
        storage = StorageConfig(**storage_data) if storage_data else StorageConfig()

        config = cls(
            receipts=receipts,
            storage=storage,
            log_level=data.get("log_level", "INFO"),
            extra=data.get("extra", {}),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Reject settings the core cannot operate with."""
        if self.receipts.id_bytes < 8:
            raise ValueError(f"receipts.id_bytes must be at least 8, got {self.receipts.id_bytes}")
        if self.storage.max_list_limit < 1:
            raise ValueError("storage.max_list_limit must be at least 1")
        if not 1 <= self.storage.default_list_limit <= self.storage.max_list_limit:
            raise ValueError(
                "storage.default_list_limit must be between 1 and storage.max_list_limit"
            )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a dictionary first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        new_config = copy.deepcopy(self)

        for key, value in overrides.get("receipts", {}).items():
            setattr(new_config.receipts, key, value)
        for key, value in overrides.get("storage", {}).items():
            setattr(new_config.storage, key, value)
        if "log_level" in overrides:
            new_config.log_level = overrides["log_level"]

        new_config.validate()
        return new_config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary."""
        return {
            "receipts": {
                "id_bytes": self.receipts.id_bytes,
            },
            "storage": {
                "default_list_limit": self.storage.default_list_limit,
                "max_list_limit": self.storage.max_list_limit,
            },
            "log_level": self.log_level,
            "extra": self.extra,
        }


# Global default configuration
_default_config: Optional[RuntimeConfig] = None


def get_default_config() -> RuntimeConfig:
    """Get the default runtime configuration."""
    global _default_config
    if _default_config is None:
        _default_config = RuntimeConfig.from_env()
    return _default_config


def set_default_config(config: Optional[RuntimeConfig]) -> None:
    """Set (or with None, reset) the default runtime configuration."""
    global _default_config
    _default_config = config
