"""
Pytest configuration and shared fixtures for receipt tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_common = importlib.import_module("fixtures.common")

make_create_input = _common.make_create_input
make_service = _common.make_service
make_id_factory = _common.make_id_factory
InMemoryReceiptStore = importlib.import_module("core.receipts").InMemoryReceiptStore


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def store():
    """Provide an empty in-memory receipt store."""
    return InMemoryReceiptStore()


@pytest.fixture
def service(store):
    """Provide a ReceiptService with a deterministic clock over `store`."""
    return make_service(store=store, id_factory=make_id_factory())


@pytest.fixture
def create_input():
    """Provide the reference sale payload."""
    return make_create_input()


@pytest.fixture
def issued_receipt(service, create_input):
    """Provide a freshly issued receipt for the reference sale."""
    return service.generate(create_input)


@pytest.fixture(autouse=True)
def _reset_default_config():
    """Keep the process-wide default config from leaking between tests."""
    from core.config import set_default_config

    set_default_config(None)
    yield
    set_default_config(None)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
