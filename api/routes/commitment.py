"""
Commitment Routes

Read and replace the active allow-list commitment.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from api.deps import ServiceState, get_caller, get_state
from api.errors import NoCommitmentError
from api.models.requests import CommitmentUpdateRequest
from api.models.responses import CommitmentResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["commitment"])


@router.get("/commitment", response_model=CommitmentResponse)
def get_commitment(state: ServiceState = Depends(get_state)) -> CommitmentResponse:
    commitment = state.ledger.get_commitment()
    if commitment is None:
        raise NoCommitmentError()
    return CommitmentResponse(root=commitment.root, metadata_pointer=commitment.metadata_pointer)


@router.put("/commitment", response_model=CommitmentResponse)
def put_commitment(
    request: CommitmentUpdateRequest,
    state: ServiceState = Depends(get_state),
    caller: Optional[str] = Depends(get_caller),
) -> CommitmentResponse:
    """
    Replace the active commitment. Requires MERKLE_SETTER.

    Proofs against the previous root stop verifying immediately;
    recorded claims carry over.
    """
    commitment = state.ledger.update_commitment(
        request.root,
        request.metadata_pointer,
        caller=caller,
    )
    return CommitmentResponse(root=commitment.root, metadata_pointer=commitment.metadata_pointer)
