"""
Test fixtures package for receipt tests.

This package provides factory functions for creating test objects.
- common.py: payload factories, deterministic clock and service builder

Usage:
    from fixtures import make_create_input, make_service

    def test_something():
        service = make_service()
        receipt = service.generate(make_create_input())
"""

from .common import (
    DEFAULT_ISSUED_AT,
    DEFAULT_TENANT,
    DEFAULT_TRANSACTION,
    OTHER_TENANT,
    SteppingClock,
    make_create_input,
    make_id_factory,
    make_line_item,
    make_refund_input,
    make_service,
    make_void_input,
)

__all__ = [
    "DEFAULT_ISSUED_AT",
    "DEFAULT_TENANT",
    "DEFAULT_TRANSACTION",
    "OTHER_TENANT",
    "SteppingClock",
    "make_create_input",
    "make_id_factory",
    "make_line_item",
    "make_refund_input",
    "make_service",
    "make_void_input",
]
