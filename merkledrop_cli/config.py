"""
CLI Configuration

Configuration for the MerkleDrop CLI from a JSON file and environment
variables. Environment variables override the file.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path


# Environment variable prefix
ENV_PREFIX = "MERKLEDROP_"

DEFAULT_CONFIG_NAME = "merkledrop.json"


@dataclass
class CLIConfig:
    """Main CLI configuration."""

    # Build defaults
    claims_out: str = "claims.json"
    metadata_pointer: str = ""

    # Logging
    log_level: str = "WARNING"
    log_file: str | None = None

    # Output
    default_output_format: str = "human"  # "human" or "json"


def load_config_from_file(path: Path) -> CLIConfig:
    """Load configuration from a JSON file."""
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r") as f:
        data = json.load(f)

    config = CLIConfig()
    config.claims_out = data.get("claims_out", config.claims_out)
    config.metadata_pointer = data.get("metadata_pointer", config.metadata_pointer)
    config.log_level = data.get("log_level", config.log_level)
    config.log_file = data.get("log_file", config.log_file)
    config.default_output_format = data.get("default_output_format", config.default_output_format)
    return config


def apply_env_overrides(config: CLIConfig) -> CLIConfig:
    """Overlay MERKLEDROP_* variables onto ``config`` in place."""
    if os.getenv(f"{ENV_PREFIX}CLAIMS_OUT"):
        config.claims_out = os.environ[f"{ENV_PREFIX}CLAIMS_OUT"]
    if os.getenv(f"{ENV_PREFIX}METADATA_POINTER"):
        config.metadata_pointer = os.environ[f"{ENV_PREFIX}METADATA_POINTER"]
    if os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
        config.log_level = os.environ[f"{ENV_PREFIX}LOG_LEVEL"]
    if os.getenv(f"{ENV_PREFIX}LOG_FILE"):
        config.log_file = os.environ[f"{ENV_PREFIX}LOG_FILE"]
    return config


def load_config(config_path: Path | None = None) -> CLIConfig:
    """
    Load configuration from file and/or environment.

    Environment variables override file settings.

    Args:
        config_path: Optional path to config file. When omitted, the default
                     locations are searched.

    Returns:
        Merged configuration
    """
    config = CLIConfig()

    if config_path is not None:
        if config_path.exists():
            config = load_config_from_file(config_path)
    else:
        default_paths = [
            Path.cwd() / DEFAULT_CONFIG_NAME,
            Path.cwd() / f".{DEFAULT_CONFIG_NAME}",
            Path.home() / ".config" / "merkledrop" / "config.json",
        ]
        for default_path in default_paths:
            if default_path.exists():
                config = load_config_from_file(default_path)
                break

    return apply_env_overrides(config)


def get_default_config_template() -> str:
    """Get a template configuration file."""
    return """{
  "claims_out": "claims.json",
  "metadata_pointer": "",
  "log_level": "WARNING",
  "log_file": null,
  "default_output_format": "human"
}
"""
