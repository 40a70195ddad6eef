"""
Schemas & Canonicalization
File: __init__.py

Purpose: Export the public API for the schemas module.

Allow-list schemas live in ``core.schemas.allowlist`` and are imported from
there directly; they depend on ``core.crypto``, which itself depends on the
error types exported here.
"""

# Version constants
from .versioning import (
    SCHEMA_VERSION,
    SUPPORTED_SCHEMA_VERSIONS,
    SchemaVersion,
    UnsupportedSchemaVersionError,
    assert_supported_schema_version,
)

# Canonical serialization API
from .canonical import (
    CANONICAL_JSON_SEPARATORS,
    canonicalize_value,
    dumps_canonical,
    ensure_utc,
    format_datetime_canonical,
    loads_canonical,
)

# Error models and exceptions
from .errors import (
    CanonicalizationException,
    CollaboratorNotConfiguredError,
    CumulativeCapExceededError,
    DuplicateRecipientError,
    EmptyTreeError,
    ErrorCodes,
    ExceedsAllocationError,
    FulfillmentFailedError,
    FulfillmentUnknownError,
    IndexOutOfRangeError,
    InsufficientEligibilityError,
    InvalidProofError,
    LedgerPersistenceError,
    MerkleDropError,
    MerkleDropException,
    NotInAllowListError,
    SchemaValidationException,
    ShapeMismatchError,
    UnauthorizedError,
)

# Ledger schemas
from .ledger import (
    ClaimReceipt,
    ClaimRecord,
)


__all__ = [
    # Versioning
    "SCHEMA_VERSION",
    "SUPPORTED_SCHEMA_VERSIONS",
    "SchemaVersion",
    "UnsupportedSchemaVersionError",
    "assert_supported_schema_version",
    # Canonical serialization
    "CANONICAL_JSON_SEPARATORS",
    "canonicalize_value",
    "dumps_canonical",
    "ensure_utc",
    "format_datetime_canonical",
    "loads_canonical",
    # Errors
    "ErrorCodes",
    "MerkleDropError",
    "MerkleDropException",
    "CanonicalizationException",
    "SchemaValidationException",
    "EmptyTreeError",
    "IndexOutOfRangeError",
    "DuplicateRecipientError",
    "NotInAllowListError",
    "InvalidProofError",
    "ShapeMismatchError",
    "ExceedsAllocationError",
    "InsufficientEligibilityError",
    "CumulativeCapExceededError",
    "CollaboratorNotConfiguredError",
    "FulfillmentFailedError",
    "FulfillmentUnknownError",
    "LedgerPersistenceError",
    "UnauthorizedError",
    # Ledger
    "ClaimRecord",
    "ClaimReceipt",
]
