"""
Hashing Utilities
Keccak-256 hashing and the allow-list leaf encoding.

This module provides:
- keccak256 for raw bytes
- leaf_hash for (recipient, allocation) pairs
- Hex encoding/decoding with 0x prefix
- Recipient address normalization

Leaf encoding is byte-compatible with Solidity's
keccak256(abi.encodePacked(uint256[] allocation, address recipient)):
every category is a 32-byte big-endian word followed by the 20-byte address.
Both parts are fixed width, so the vector length is implied by the input size
and no two distinct pairs share an encoding.
"""
from __future__ import annotations

from typing import Sequence

from eth_utils import is_address, keccak, to_canonical_address, to_checksum_address

from core.schemas.errors import SchemaValidationException


# Width of one ABI word
WORD_SIZE = 32

# Largest value representable in a uint256 word
MAX_UINT256 = 2**256 - 1


def keccak256(data: bytes) -> bytes:
    """
    Compute the Keccak-256 digest of raw bytes.

    Example:
        >>> keccak256(b"").hex()
        'c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470'
    """
    return keccak(primitive=data)


def hash_concat(left: bytes, right: bytes) -> bytes:
    """Hash the concatenation of two digests: keccak256(left || right)."""
    return keccak256(left + right)


def normalize_address(recipient: str) -> str:
    """
    Normalize a recipient address to its EIP-55 checksum form.

    Raises:
        SchemaValidationException: If the value is not a valid address.
    """
    if not isinstance(recipient, str) or not is_address(recipient):
        raise SchemaValidationException(
            message=f"Invalid recipient address: {recipient!r}",
            field_path="recipient",
        )
    return to_checksum_address(recipient)


def encode_allocation(allocation: Sequence[int]) -> bytes:
    """
    Pack an allocation vector as consecutive uint256 words.

    Raises:
        SchemaValidationException: If an element is not an int in [0, 2**256).
    """
    words = []
    for i, amount in enumerate(allocation):
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise SchemaValidationException(
                message=f"Allocation amounts must be integers, got {type(amount).__name__}",
                field_path=f"allocation[{i}]",
            )
        if amount < 0 or amount > MAX_UINT256:
            raise SchemaValidationException(
                message=f"Allocation amount {amount} outside uint256 range",
                field_path=f"allocation[{i}]",
            )
        words.append(amount.to_bytes(WORD_SIZE, "big"))
    return b"".join(words)


def leaf_hash(recipient: str, allocation: Sequence[int]) -> bytes:
    """
    Compute the Merkle leaf for one allow-list entry.

    leaf = keccak256(uint256(allocation[0]) || ... || address(recipient))

    Args:
        recipient: Recipient address (any case; validated)
        allocation: Per-category maximum entitlement

    Returns:
        32-byte leaf digest
    """
    address_bytes = to_canonical_address(normalize_address(recipient))
    return keccak256(encode_allocation(allocation) + address_bytes)


def to_hex(data: bytes) -> str:
    """
    Convert bytes to hexadecimal string with 0x prefix.

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return "0x" + data.hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert a 0x-prefixed hexadecimal string to bytes.

    Raises:
        ValueError: If the prefix is missing, the length is odd,
                    or the string contains invalid hex characters
    """
    if not hex_string.startswith("0x"):
        raise ValueError(
            f"Hex string must start with '0x' prefix, got: {hex_string[:10]}..."
        )

    hex_content = hex_string[2:]

    if len(hex_content) % 2 != 0:
        raise ValueError(
            f"Hex string must have even length after 0x prefix, "
            f"got length {len(hex_content)}"
        )

    try:
        return bytes.fromhex(hex_content)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in string: {e}") from e


__all__ = [
    "WORD_SIZE",
    "MAX_UINT256",
    "keccak256",
    "hash_concat",
    "normalize_address",
    "encode_allocation",
    "leaf_hash",
    "to_hex",
    "from_hex",
]
