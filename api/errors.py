"""
API Error Handling

Maps ledger and commitment exceptions onto HTTP responses with stable codes.
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from api.models.responses import ErrorDetail, ErrorResponse
from core.http.client import HttpError
from core.schemas.errors import ErrorCodes, MerkleDropException

logger = logging.getLogger(__name__)


# HTTP status per MerkleDropException code; unlisted codes answer 400
STATUS_BY_CODE: dict[str, int] = {
    ErrorCodes.SCHEMA_VALIDATION_ERROR: 422,
    ErrorCodes.SHAPE_MISMATCH: 422,
    ErrorCodes.MERKLE_PROOF_INVALID: 400,
    ErrorCodes.EXCEEDS_ALLOCATION: 400,
    ErrorCodes.INSUFFICIENT_ELIGIBILITY: 409,
    ErrorCodes.CUMULATIVE_CAP_EXCEEDED: 409,
    ErrorCodes.NOT_IN_ALLOW_LIST: 404,
    ErrorCodes.UNAUTHORIZED: 403,
    ErrorCodes.COLLABORATOR_NOT_CONFIGURED: 503,
    ErrorCodes.FULFILLMENT_FAILED: 502,
    ErrorCodes.FULFILLMENT_OUTCOME_UNKNOWN: 502,
    ErrorCodes.LEDGER_PERSISTENCE_FAILED: 500,
}


class APIError(Exception):
    """Base API error with structured response."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            ok=False,
            error=ErrorDetail(
                code=self.code,
                message=self.message,
                details=self.details,
            ),
        )


class NoCommitmentError(APIError):
    """No commitment has been published yet."""

    def __init__(self):
        super().__init__(
            code="NO_COMMITMENT",
            message="No commitment is active",
            status_code=404,
        )


class NoAllowListError(APIError):
    """The service has no allow-list or claims file to serve proofs from."""

    def __init__(self):
        super().__init__(
            code="NO_ALLOWLIST",
            message="No allow-list loaded; proofs are unavailable",
            status_code=404,
        )


class StaleProofSourceError(APIError):
    """The loaded allow-list commits to a root the ledger no longer accepts."""

    def __init__(self, served_root: str, active_root: str):
        super().__init__(
            code="STALE_PROOF_SOURCE",
            message="Loaded allow-list does not match the active commitment",
            status_code=409,
            details={"served_root": served_root, "active_root": active_root},
        )


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle APIError exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(),
    )


async def merkledrop_error_handler(request: Request, exc: MerkleDropException) -> JSONResponse:
    """Handle ledger and commitment exceptions."""
    status_code = STATUS_BY_CODE.get(exc.code, 400)
    model = exc.to_error_model()
    details = dict(model.details)
    if model.retryable:
        details["retryable"] = True
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            ok=False,
            error=ErrorDetail(code=model.code, message=model.message, details=details),
        ).model_dump(mode="json"),
    )


async def upstream_error_handler(request: Request, exc: HttpError) -> JSONResponse:
    """Handle failures talking to the eligibility oracle."""
    logger.warning(f"Upstream call failed on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=502,
        content=ErrorResponse(
            ok=False,
            error=ErrorDetail(
                code="UPSTREAM_ERROR",
                message=str(exc),
                details={"status_code": exc.status_code},
            ),
        ).model_dump(),
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            ok=False,
            error=ErrorDetail(
                code="INTERNAL_ERROR",
                message="An unexpected error occurred",
                details={"type": type(exc).__name__},
            ),
        ).model_dump(),
    )
