"""
Core cryptographic utilities.

Keccak-256 hashing, the allow-list leaf encoding and address handling.
"""
from .hashing import (
    MAX_UINT256,
    WORD_SIZE,
    encode_allocation,
    from_hex,
    hash_concat,
    keccak256,
    leaf_hash,
    normalize_address,
    to_hex,
)

__all__ = [
    "MAX_UINT256",
    "WORD_SIZE",
    "encode_allocation",
    "from_hex",
    "hash_concat",
    "keccak256",
    "leaf_hash",
    "normalize_address",
    "to_hex",
]
