"""API request and response models."""

from api.models.requests import ClaimRequest, ClaimedOverrideRequest, CommitmentUpdateRequest
from api.models.responses import (
    ClaimResponse,
    ClaimedResponse,
    ClaimsHistoryResponse,
    CommitmentResponse,
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    ProofResponse,
)

__all__ = [
    "ClaimRequest",
    "ClaimedOverrideRequest",
    "CommitmentUpdateRequest",
    "HealthResponse",
    "CommitmentResponse",
    "ProofResponse",
    "ClaimResponse",
    "ClaimedResponse",
    "ClaimsHistoryResponse",
    "ErrorDetail",
    "ErrorResponse",
]
