"""
Claim Routes

- POST /claim - redeem part of a committed allocation
- GET /claimed/{recipient} - cumulative claimed amounts
- PUT /claimed/{recipient} - administrative override
- GET /claims - fulfilled claim receipts
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.deps import ServiceState, get_caller, get_state
from api.models.requests import ClaimedOverrideRequest, ClaimRequest
from api.models.responses import ClaimedResponse, ClaimResponse, ClaimsHistoryResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["claims"])


@router.post("/claim", response_model=ClaimResponse)
def post_claim(request: ClaimRequest, state: ServiceState = Depends(get_state)) -> ClaimResponse:
    """
    Claim ``amounts`` against ``max_allocation``.

    Rejections map to 4xx with the ledger's error code; the ledger is left
    unchanged. A 500 LEDGER_PERSISTENCE_FAILED means the claim was
    fulfilled but not durably recorded. A 502 FULFILLMENT_OUTCOME_UNKNOWN
    means the sink may have credited; reconcile before retrying.
    """
    receipt = state.ledger.claim(
        request.amounts,
        request.max_allocation,
        request.recipient,
        request.proof,
        leaf_index=request.leaf_index,
    )
    return ClaimResponse(ok=True, receipt=receipt)


@router.get("/claimed/{recipient}", response_model=ClaimedResponse)
def get_claimed(recipient: str, state: ServiceState = Depends(get_state)) -> ClaimedResponse:
    record = state.ledger.get_record(recipient)
    return ClaimedResponse(recipient=record.recipient, claimed=list(record.claimed), total=record.total)


@router.put("/claimed/{recipient}", response_model=ClaimedResponse)
def put_claimed(
    recipient: str,
    request: ClaimedOverrideRequest,
    state: ServiceState = Depends(get_state),
    caller: Optional[str] = Depends(get_caller),
) -> ClaimedResponse:
    """Override the recipient's claimed total. Requires CLAIMED_SETTER."""
    record = state.ledger.override_claimed(recipient, request.total, caller=caller)
    return ClaimedResponse(recipient=record.recipient, claimed=list(record.claimed), total=record.total)


@router.get("/claims", response_model=ClaimsHistoryResponse)
def list_claims(
    recipient: Optional[str] = Query(default=None, description="Only this recipient's claims"),
    state: ServiceState = Depends(get_state),
) -> ClaimsHistoryResponse:
    receipts = state.ledger.claim_history(recipient)
    return ClaimsHistoryResponse(count=len(receipts), receipts=receipts)
