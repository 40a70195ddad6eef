"""
Schemas & Canonicalization
File: ledger.py

Purpose: Claim ledger state and receipt schemas.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ClaimRecord(BaseModel):
    """Cumulative amounts claimed by one recipient, per category."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    recipient: str = Field(..., description="Checksummed recipient address")
    claimed: tuple[int, ...] = Field(default_factory=tuple)

    @property
    def total(self) -> int:
        """Aggregate claimed across every category."""
        return sum(self.claimed)


class ClaimReceipt(BaseModel):
    """
    Record of one fulfilled claim.

    ``claimed_after`` is the recipient's cumulative vector once this claim
    was applied, so a receipt history can be replayed to audit the ledger.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    receipt_id: str = Field(..., min_length=1)
    recipient: str
    amounts: tuple[int, ...]
    max_allocation: tuple[int, ...]
    root: str = Field(..., description="Commitment root the proof was checked against")
    claimed_after: tuple[int, ...]
    timestamp: datetime

    @property
    def total(self) -> int:
        return sum(self.amounts)
