"""
Pytest configuration and shared fixtures for MerkleDrop tests.

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

make_allowlist = _common.make_allowlist
make_ledger = _common.make_ledger


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def allowlist():
    """Provide the default four-recipient AllowList."""
    return make_allowlist()


@pytest.fixture
def wired_ledger(allowlist):
    """Provide (ledger, oracle, sink) committed to the default allow-list."""
    return make_ledger(allowlist)


@pytest.fixture
def ledger(wired_ledger):
    """Provide just the ClaimLedger from wired_ledger."""
    return wired_ledger[0]


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep MERKLEDROP_* variables from the developer's shell out of tests."""
    import os
    for key in list(os.environ):
        if key.startswith("MERKLEDROP_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
