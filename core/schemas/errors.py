"""
Schemas & Canonicalization
File: errors.py

Purpose: Standard error taxonomy for allow-list commitments and the claim ledger.
Defines both Pydantic models for structured error communication
and Python exceptions for control flow.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes."""

    # Schema & Validation Errors
    SCHEMA_VALIDATION_ERROR = "SCHEMA_VALIDATION_ERROR"
    CANONICALIZATION_ERROR = "CANONICALIZATION_ERROR"

    # Merkle & Commitment Errors
    EMPTY_TREE = "EMPTY_TREE"
    INDEX_OUT_OF_RANGE = "INDEX_OUT_OF_RANGE"
    NOT_IN_ALLOW_LIST = "NOT_IN_ALLOW_LIST"
    DUPLICATE_RECIPIENT = "DUPLICATE_RECIPIENT"
    MERKLE_PROOF_INVALID = "MERKLE_PROOF_INVALID"

    # Claim Errors
    SHAPE_MISMATCH = "SHAPE_MISMATCH"
    EXCEEDS_ALLOCATION = "EXCEEDS_ALLOCATION"
    INSUFFICIENT_ELIGIBILITY = "INSUFFICIENT_ELIGIBILITY"
    CUMULATIVE_CAP_EXCEEDED = "CUMULATIVE_CAP_EXCEEDED"

    # Collaborator & Ledger Errors
    COLLABORATOR_NOT_CONFIGURED = "COLLABORATOR_NOT_CONFIGURED"
    FULFILLMENT_FAILED = "FULFILLMENT_FAILED"
    FULFILLMENT_OUTCOME_UNKNOWN = "FULFILLMENT_OUTCOME_UNKNOWN"
    LEDGER_PERSISTENCE_FAILED = "LEDGER_PERSISTENCE_FAILED"
    UNAUTHORIZED = "UNAUTHORIZED"


# =============================================================================
# Pydantic Error Model (Structured Communication)
# =============================================================================

class MerkleDropError(BaseModel):
    """
    Error model for structured error communication.

    Used to pass errors across the API boundary without exceptions.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.CUMULATIVE_CAP_EXCEEDED],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried",
    )

    def to_exception(self) -> "MerkleDropException":
        """Convert this error model to a raised exception."""
        return MerkleDropException(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class MerkleDropException(Exception):
    """
    Base exception for all MerkleDrop errors.

    Carries structured error information and can be converted
    to/from MerkleDropError models.
    """

    code_default: str = "MERKLEDROP_ERROR"
    retryable_default: bool = False

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code or self.code_default
        self.message = message
        self.details = details or {}
        self.retryable = self.retryable_default if retryable is None else retryable

    def to_error_model(self) -> MerkleDropError:
        """Convert this exception to a MerkleDropError model."""
        return MerkleDropError(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class CanonicalizationException(MerkleDropException):
    """Exception raised when canonical serialization fails."""

    code_default = ErrorCodes.CANONICALIZATION_ERROR


class SchemaValidationException(MerkleDropException):
    """Exception raised when input validation fails."""

    code_default = ErrorCodes.SCHEMA_VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        field_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if field_path:
            full_details["field_path"] = field_path
        super().__init__(message=message, details=full_details)


# --- Merkle / commitment construction ---------------------------------------

class EmptyTreeError(MerkleDropException):
    """A Merkle tree or allow-list was requested over zero leaves."""

    code_default = ErrorCodes.EMPTY_TREE


class IndexOutOfRangeError(MerkleDropException, IndexError):
    """A proof was requested for a leaf position that does not exist."""

    code_default = ErrorCodes.INDEX_OUT_OF_RANGE

    def __init__(self, index: int, size: int) -> None:
        super().__init__(
            message=f"Leaf index {index} out of range for {size} leaves",
            details={"index": index, "size": size},
        )


class DuplicateRecipientError(MerkleDropException):
    """The same recipient appears more than once in an allow-list."""

    code_default = ErrorCodes.DUPLICATE_RECIPIENT

    def __init__(self, recipient: str, first_index: int, second_index: int) -> None:
        super().__init__(
            message=f"Recipient {recipient} listed more than once",
            details={
                "recipient": recipient,
                "first_index": first_index,
                "second_index": second_index,
            },
        )


class NotInAllowListError(MerkleDropException):
    """No committed leaf matches the (recipient, allocation) pair."""

    code_default = ErrorCodes.NOT_IN_ALLOW_LIST

    def __init__(
        self,
        recipient: str,
        allocation: tuple[int, ...] | list[int] | None = None,
    ) -> None:
        if allocation is None:
            message = f"No allow-list entry for {recipient}"
        else:
            message = f"No allow-list entry for {recipient} with allocation {list(allocation)}"
        super().__init__(
            message=message,
            details={
                "recipient": recipient,
                "allocation": None if allocation is None else list(allocation),
            },
        )


class InvalidProofError(MerkleDropException):
    """The supplied proof does not reproduce the active root."""

    code_default = ErrorCodes.MERKLE_PROOF_INVALID


# --- Claim rejections --------------------------------------------------------

class ShapeMismatchError(MerkleDropException):
    """Two vectors that must share a length do not."""

    code_default = ErrorCodes.SHAPE_MISMATCH

    def __init__(self, message: str, expected: int, actual: int) -> None:
        super().__init__(
            message=message,
            details={"expected": expected, "actual": actual},
        )


class ExceedsAllocationError(MerkleDropException):
    """A single request asks for more than the committed cap of a category."""

    code_default = ErrorCodes.EXCEEDS_ALLOCATION


class InsufficientEligibilityError(MerkleDropException):
    """The eligibility oracle reports too little standing for this allocation."""

    code_default = ErrorCodes.INSUFFICIENT_ELIGIBILITY
    retryable_default = True

    def __init__(self, recipient: str, required: int, available: int) -> None:
        super().__init__(
            message=f"Eligibility for {recipient} is {available}, {required} required",
            details={
                "recipient": recipient,
                "required": required,
                "available": available,
            },
        )


class CumulativeCapExceededError(MerkleDropException):
    """Running total plus this request would pass the cap of a category."""

    code_default = ErrorCodes.CUMULATIVE_CAP_EXCEEDED


# --- Collaborators & persistence ---------------------------------------------

class CollaboratorNotConfiguredError(MerkleDropException):
    """The eligibility oracle or fulfillment sink binding is unset."""

    code_default = ErrorCodes.COLLABORATOR_NOT_CONFIGURED

    def __init__(self, collaborator: str) -> None:
        super().__init__(
            message=f"No {collaborator} configured",
            details={"collaborator": collaborator},
        )


class FulfillmentFailedError(MerkleDropException):
    """The fulfillment sink refused or failed to credit the claim."""

    code_default = ErrorCodes.FULFILLMENT_FAILED
    retryable_default = True


class FulfillmentUnknownError(FulfillmentFailedError):
    """
    The sink raised after the credit may already have taken effect.

    Not retryable: the outcome must be reconciled with the sink first,
    using the idempotency key in ``details``.
    """

    code_default = ErrorCodes.FULFILLMENT_OUTCOME_UNKNOWN
    retryable_default = False


class LedgerPersistenceError(MerkleDropException):
    """The claim was fulfilled but could not be written to durable storage."""

    code_default = ErrorCodes.LEDGER_PERSISTENCE_FAILED


class UnauthorizedError(MerkleDropException):
    """The caller lacks the capability for an administrative operation."""

    code_default = ErrorCodes.UNAUTHORIZED

    def __init__(self, capability: str, caller: str | None) -> None:
        super().__init__(
            message=f"Caller {caller!r} lacks capability {capability}",
            details={"capability": capability, "caller": caller},
        )
