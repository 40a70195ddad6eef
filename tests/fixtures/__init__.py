"""
Test fixtures package for MerkleDrop tests.

This package provides factory functions for creating test objects:
- common.py: addresses, allow-lists and wired claim ledgers

Usage:
    from fixtures.common import ALICE, make_allowlist, make_ledger

    def test_something():
        ledger, oracle, sink = make_ledger()
"""

from .common import (
    ALICE,
    BOB,
    CAROL,
    DAVE,
    DEFAULT_ENTRIES,
    EVE,
    make_allowlist,
    make_ledger,
)

__all__ = [
    "ALICE",
    "BOB",
    "CAROL",
    "DAVE",
    "EVE",
    "DEFAULT_ENTRIES",
    "make_allowlist",
    "make_ledger",
]
