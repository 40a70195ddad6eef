"""
Schemas & Canonicalization
File: allowlist.py

Purpose: Allow-list entry and published commitment schemas.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.crypto.hashing import MAX_UINT256, from_hex, normalize_address
from .errors import SchemaValidationException
from .versioning import SCHEMA_VERSION

# Length of a keccak-256 root in bytes
ROOT_SIZE = 32


class AllowListEntry(BaseModel):
    """
    One (recipient, allocation) pair committed into an allow-list.

    The recipient is normalized to its EIP-55 checksum form so that two
    spellings of one address compare equal.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    recipient: str = Field(..., description="Recipient address")
    allocation: tuple[int, ...] = Field(
        ...,
        description="Maximum cumulative entitlement per category",
    )

    @field_validator("recipient", mode="before")
    @classmethod
    def _normalize_recipient(cls, value: Any) -> str:
        try:
            return normalize_address(value)
        except SchemaValidationException as e:
            raise ValueError(e.message) from e

    @field_validator("allocation")
    @classmethod
    def _check_allocation(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        for amount in value:
            if amount < 0 or amount > MAX_UINT256:
                raise ValueError(f"Allocation amount {amount} outside uint256 range")
        return value

    @property
    def total(self) -> int:
        """Sum of the allocation across all categories."""
        return sum(self.allocation)


class Commitment(BaseModel):
    """
    The published fingerprint of an allow-list.

    ``metadata_pointer`` is an opaque string addressing the human-readable
    list (e.g. an IPFS content identifier); it is never interpreted here.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    root: str = Field(..., description="0x-prefixed 32-byte Merkle root")
    metadata_pointer: str = Field(default="", description="Opaque pointer to the allow-list")

    @field_validator("root", mode="before")
    @classmethod
    def _check_root(cls, value: Any) -> str:
        if isinstance(value, bytes):
            value = "0x" + value.hex()
        if not isinstance(value, str):
            raise ValueError("root must be a hex string or bytes")
        raw = from_hex(value.lower())
        if len(raw) != ROOT_SIZE:
            raise ValueError(f"root must be {ROOT_SIZE} bytes, got {len(raw)}")
        return value.lower()

    @property
    def root_bytes(self) -> bytes:
        return from_hex(self.root)


class ClaimsFileEntry(BaseModel):
    """Per-recipient section of a published claims file."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    index: int = Field(..., ge=0)
    allocation: tuple[int, ...]
    proof: tuple[str, ...] = Field(default_factory=tuple, description="0x-prefixed sibling hashes")


class ClaimsFile(BaseModel):
    """
    Everything a recipient needs to claim: the commitment plus every
    entry's allocation, leaf index and sibling path.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: str = Field(default=SCHEMA_VERSION)
    root: str
    metadata_pointer: str = ""
    categories: int = Field(..., ge=0)
    total_allocation: tuple[int, ...] = Field(default_factory=tuple)
    claims: dict[str, ClaimsFileEntry] = Field(default_factory=dict)

    @property
    def commitment(self) -> Commitment:
        return Commitment(root=self.root, metadata_pointer=self.metadata_pointer)

    def entry_for(self, recipient: str) -> tuple[str, ClaimsFileEntry] | None:
        """Find the entry for ``recipient`` regardless of address casing."""
        try:
            key = normalize_address(recipient)
        except SchemaValidationException:
            return None
        entry = self.claims.get(key)
        return None if entry is None else (key, entry)
