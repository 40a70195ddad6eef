"""
API Request Models

Pydantic models for API request validation. Amount values are checked by
the ledger itself so that error codes match the library's.
"""

from pydantic import BaseModel, Field


class ClaimRequest(BaseModel):
    """Request body for POST /claim."""

    recipient: str = Field(..., min_length=1, description="Recipient address")
    amounts: list[int] = Field(..., description="Amount to claim now, per category")
    max_allocation: list[int] = Field(
        ...,
        description="The recipient's committed allocation, exactly as in the allow-list",
    )
    proof: list[str] = Field(
        default_factory=list,
        description="0x-hex sibling hashes, leaf level first",
    )
    leaf_index: int = Field(..., ge=0, description="Leaf position in the committed order")


class CommitmentUpdateRequest(BaseModel):
    """Request body for PUT /commitment."""

    root: str = Field(..., description="0x-prefixed 32-byte Merkle root")
    metadata_pointer: str = Field(default="", max_length=2048)


class ClaimedOverrideRequest(BaseModel):
    """Request body for PUT /claimed/{recipient}."""

    total: int = Field(..., description="New aggregate claimed amount; 0 clears")
