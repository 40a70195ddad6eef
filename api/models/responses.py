"""
API Response Models

Pydantic models for API response serialization.
"""

from typing import Any

from pydantic import BaseModel, Field

from core.schemas.ledger import ClaimReceipt


class HealthResponse(BaseModel):
    """Response for GET /health endpoint."""

    ok: bool = True
    service: str = "merkledrop-api"
    version: str = "v1"
    root: str | None = Field(default=None, description="Active commitment root, if any")


class CommitmentResponse(BaseModel):
    """The active commitment."""

    root: str = Field(..., description="0x-prefixed 32-byte Merkle root")
    metadata_pointer: str = Field(default="", description="Off-chain pointer to the allow-list")


class ProofResponse(BaseModel):
    """Membership proof for one recipient."""

    recipient: str
    index: int = Field(..., description="Leaf position in the committed order")
    allocation: list[int] = Field(..., description="Committed maximum allocation per category")
    leaf: str
    proof: list[str] = Field(..., description="Sibling hashes, leaf level first")
    root: str = Field(..., description="Root of the allow-list the proof was built from")


class ClaimResponse(BaseModel):
    """Response for POST /claim."""

    ok: bool = True
    receipt: ClaimReceipt


class ClaimedResponse(BaseModel):
    """Cumulative claims of one recipient."""

    recipient: str
    claimed: list[int] = Field(default_factory=list, description="Claimed amount per category")
    total: int = Field(default=0, description="Claimed amount summed across categories")


class ClaimsHistoryResponse(BaseModel):
    """Fulfilled claims, oldest first."""

    count: int
    receipts: list[ClaimReceipt] = Field(default_factory=list)


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response."""

    ok: bool = False
    error: ErrorDetail = Field(..., description="Error details")
