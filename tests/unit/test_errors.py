"""
Error Taxonomy Unit Tests
Tests for core/schemas/errors.py and api/errors.py
"""
import pytest

from api.errors import STATUS_BY_CODE
from core.schemas.errors import (
    CollaboratorNotConfiguredError,
    CumulativeCapExceededError,
    ErrorCodes,
    FulfillmentFailedError,
    FulfillmentUnknownError,
    IndexOutOfRangeError,
    InsufficientEligibilityError,
    MerkleDropError,
    MerkleDropException,
    SchemaValidationException,
    UnauthorizedError,
)


class TestMerkleDropException:
    """Structured exceptions and their model form."""

    def test_defaults_from_class(self):
        err = CumulativeCapExceededError("over", details={"categories": [0]})
        assert err.code == ErrorCodes.CUMULATIVE_CAP_EXCEEDED
        assert err.retryable is False
        assert str(err) == "over"

    @pytest.mark.parametrize(
        "err",
        [
            InsufficientEligibilityError("0xabc", 3, 2),
            FulfillmentFailedError("sink down"),
        ],
    )
    def test_retryable_errors(self, err):
        assert err.retryable is True

    def test_unknown_fulfillment_is_not_retryable(self):
        err = FulfillmentUnknownError("timeout", details={"idempotency_key": "rc_claim_1"})
        assert isinstance(err, FulfillmentFailedError)
        assert err.code == ErrorCodes.FULFILLMENT_OUTCOME_UNKNOWN
        assert err.retryable is False

    def test_model_round_trip(self):
        err = CollaboratorNotConfiguredError("fulfillment sink")
        model = err.to_error_model()
        assert isinstance(model, MerkleDropError)
        assert model.details == {"collaborator": "fulfillment sink"}
        again = model.to_exception()
        assert isinstance(again, MerkleDropException)
        assert (again.code, again.message) == (err.code, err.message)

    def test_schema_validation_field_path(self):
        err = SchemaValidationException("bad", field_path="amounts[2]")
        assert err.details == {"field_path": "amounts[2]"}

    def test_index_error_is_also_builtin(self):
        with pytest.raises(IndexError):
            raise IndexOutOfRangeError(5, 4)

    def test_unauthorized_details(self):
        err = UnauthorizedError("ADMIN", None)
        assert err.details == {"capability": "ADMIN", "caller": None}


class TestStatusMapping:
    """Every claim-facing code has an HTTP status."""

    @pytest.mark.parametrize(
        "code,status",
        [
            (ErrorCodes.MERKLE_PROOF_INVALID, 400),
            (ErrorCodes.CUMULATIVE_CAP_EXCEEDED, 409),
            (ErrorCodes.FULFILLMENT_OUTCOME_UNKNOWN, 502),
            (ErrorCodes.UNAUTHORIZED, 403),
            (ErrorCodes.COLLABORATOR_NOT_CONFIGURED, 503),
            (ErrorCodes.LEDGER_PERSISTENCE_FAILED, 500),
        ],
    )
    def test_status(self, code, status):
        assert STATUS_BY_CODE[code] == status
