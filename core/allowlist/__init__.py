"""
Allow-List Commitment

Turns an ordered list of (recipient, allocation) entries into a Merkle
commitment and serves per-recipient proofs.

Usage:
    from core.allowlist import AllowList

    allowlist = AllowList.from_entries([(addr, [1, 1, 1]), ...])
    commitment = allowlist.commitment("ipfs://Qm...")
    proof = allowlist.proof_for(addr, [1, 1, 1])
"""

from .commitment import AllowList, coerce_entry
from .io import (
    AllowListIOError,
    build_claims_file,
    load_allowlist,
    load_claims_file,
    proof_from_claims_file,
    save_claims_file,
    write_json_atomic,
)

__all__ = [
    "AllowList",
    "coerce_entry",
    "AllowListIOError",
    "build_claims_file",
    "load_allowlist",
    "load_claims_file",
    "proof_from_claims_file",
    "save_claims_file",
    "write_json_atomic",
]
