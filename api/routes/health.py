"""
Health Check Route

Liveness endpoint.
"""

from fastapi import APIRouter, Depends

from api.deps import ServiceState, get_state
from api.models.responses import HealthResponse


router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health_check(state: ServiceState = Depends(get_state)) -> HealthResponse:
    """
    Health check endpoint.

    Reports the active root so monitors can tell which allow-list is live.
    """
    commitment = state.ledger.get_commitment()
    return HealthResponse(ok=True, root=commitment.root if commitment else None)
