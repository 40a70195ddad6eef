"""
Common test fixtures shared by all modules.

Provides factory functions for core MerkleDrop structures:
- Allow-lists and their commitments
- Claim ledgers wired to in-memory collaborators

Addresses are lowercase so that tests also exercise checksum normalization.
"""

from typing import Optional, Sequence

from core.allowlist import AllowList
from core.ledger import (
    AccessPolicy,
    ClaimLedger,
    InMemoryFulfillmentSink,
    LedgerStore,
    StaticEligibilityOracle,
)


ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
CAROL = "0x" + "c3" * 20
DAVE = "0x" + "d4" * 20
EVE = "0x" + "e5" * 20

DEFAULT_ENTRIES: list[tuple[str, list[int]]] = [
    (ALICE, [1, 1, 1]),
    (BOB, [2, 0, 1]),
    (CAROL, [0, 5, 0]),
    (DAVE, [3, 3, 3]),
]


def make_allowlist(
    entries: Optional[Sequence[tuple[str, Sequence[int]]]] = None,
) -> AllowList:
    """
    Create an AllowList for testing.

    Args:
        entries: (recipient, allocation) pairs; defaults to DEFAULT_ENTRIES

    Returns:
        AllowList over the entries in the given order
    """
    return AllowList.from_entries(entries if entries is not None else DEFAULT_ENTRIES)


def make_ledger(
    allowlist: Optional[AllowList] = None,
    *,
    balances: Optional[dict[str, int]] = None,
    store: Optional[LedgerStore] = None,
    access_policy: Optional[AccessPolicy] = None,
    with_oracle: bool = True,
    with_sink: bool = True,
) -> tuple[ClaimLedger, StaticEligibilityOracle, InMemoryFulfillmentSink]:
    """
    Create a ClaimLedger committed to ``allowlist``.

    Every allow-listed recipient gets an eligibility balance equal to its
    total allocation unless ``balances`` says otherwise.

    Returns:
        (ledger, oracle, sink); the oracle and sink are returned even when
        not bound so tests can bind them later.
    """
    allowlist = allowlist or make_allowlist()
    if balances is None:
        balances = {entry.recipient: entry.total for entry in allowlist}
    oracle = StaticEligibilityOracle(balances)
    sink = InMemoryFulfillmentSink()
    ledger = ClaimLedger(
        store,
        commitment=allowlist.commitment("ipfs://test-metadata"),
        eligibility_oracle=oracle if with_oracle else None,
        fulfillment_sink=sink if with_sink else None,
        access_policy=access_policy,
    )
    return ledger, oracle, sink
