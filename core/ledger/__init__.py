"""
Claim ledger: cumulative, proof-gated claims against an allow-list commitment.
"""

from .access import (
    AccessPolicy,
    Capability,
    OpenAccessPolicy,
    RoleRegistry,
    require,
)
from .claim_ledger import ClaimLedger, ProofLike
from .collaborators import (
    EligibilityOracle,
    FulfillmentSink,
    HttpEligibilityOracle,
    HttpFulfillmentSink,
    InMemoryFulfillmentSink,
    StaticEligibilityOracle,
)
from .store import InMemoryLedgerStore, JsonFileLedgerStore, LedgerStore

__all__ = [
    # Ledger
    "ClaimLedger",
    "ProofLike",
    # Access
    "AccessPolicy",
    "Capability",
    "OpenAccessPolicy",
    "RoleRegistry",
    "require",
    # Collaborators
    "EligibilityOracle",
    "FulfillmentSink",
    "StaticEligibilityOracle",
    "InMemoryFulfillmentSink",
    "HttpEligibilityOracle",
    "HttpFulfillmentSink",
    # Stores
    "LedgerStore",
    "InMemoryLedgerStore",
    "JsonFileLedgerStore",
]
