"""
Schemas & Canonicalization
File: versioning.py

Purpose: Centralize schema version constants for persisted files
(claims file, ledger store). No imports from other schema files.
"""

from typing import Literal

# Current schema version - written into every persisted document
SCHEMA_VERSION: str = "v1"

# Type alias for schema version (future-proof for migrations)
SchemaVersion = Literal["v1"]

SUPPORTED_SCHEMA_VERSIONS: frozenset[str] = frozenset({"v1"})


class UnsupportedSchemaVersionError(ValueError):
    """Raised when a persisted document carries an unknown schema version."""

    def __init__(self, version: str, supported: frozenset[str] | None = None) -> None:
        self.version = version
        self.supported = supported or SUPPORTED_SCHEMA_VERSIONS
        super().__init__(
            f"Unsupported schema version: '{version}'. "
            f"Supported versions: {sorted(self.supported)}"
        )


def assert_supported_schema_version(version: str) -> None:
    """
    Validate that the given schema version is supported.

    Raises:
        UnsupportedSchemaVersionError: If the version is not supported.
    """
    if version not in SUPPORTED_SCHEMA_VERSIONS:
        raise UnsupportedSchemaVersionError(version)
