"""
Runtime Configuration Module

Provides configuration loading and management for MerkleDrop services.
"""

from .runtime import (
    ApiConfig,
    HttpConfig,
    LedgerConfig,
    OracleConfig,
    RuntimeConfig,
    SinkConfig,
    get_default_config,
    set_default_config,
)

__all__ = [
    "RuntimeConfig",
    "LedgerConfig",
    "OracleConfig",
    "SinkConfig",
    "HttpConfig",
    "ApiConfig",
    "get_default_config",
    "set_default_config",
]
