"""
CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m merkledrop_cli build <allowlist> [--out claims.json] [--metadata PTR] [--json]
    python -m merkledrop_cli proof <claims.json> <recipient> [--json]
    python -m merkledrop_cli verify <claims.json> [recipient] [--root 0x...] [--json]
    python -m merkledrop_cli config --init

Environment Variables:
    MERKLEDROP_CLAIMS_OUT         Default claims file path for build
    MERKLEDROP_METADATA_POINTER   Default metadata pointer for build
    MERKLEDROP_LOG_LEVEL          Log level (default: WARNING)
    MERKLEDROP_LOG_FILE           Also log to this file
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from dataclasses import asdict
from pathlib import Path
from typing import Sequence

from merkledrop_cli.commands import build, proof, verify
from merkledrop_cli.config import (
    DEFAULT_CONFIG_NAME,
    ENV_PREFIX,
    get_default_config_template,
    load_config,
)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="merkledrop",
        description="MerkleDrop CLI - Commit allow-lists, look up and verify claim proofs.",
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s 0.1.0"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help=f"Path to configuration file (default: ./{DEFAULT_CONFIG_NAME} or ~/.config/merkledrop/config.json)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- build command ---
    build_parser = subparsers.add_parser(
        "build",
        help="Commit an allow-list and write its claims file",
        description="Build the Merkle root of an allow-list (JSON or CSV) and write every entry's proof.",
    )
    build_parser.add_argument(
        "allowlist",
        type=str,
        help="Allow-list file: JSON list of {recipient, allocation} or CSV with recipient,allocation",
    )
    build_parser.add_argument(
        "--out", "-o",
        type=str,
        default=None,
        help="Output claims file (default: from config or claims.json)",
    )
    build_parser.add_argument(
        "--metadata",
        type=str,
        default=None,
        help="Metadata pointer to publish with the root (e.g. ipfs://...)",
    )
    build_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON summary",
    )
    build_parser.set_defaults(func=build.build_cmd)

    # --- proof command ---
    proof_parser = subparsers.add_parser(
        "proof",
        help="Print a recipient's allocation and proof",
        description="Look up a recipient in a claims file and print what is needed to claim.",
    )
    proof_parser.add_argument("claims_file", type=str, help="Claims file written by build")
    proof_parser.add_argument("recipient", type=str, help="Recipient address")
    proof_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON",
    )
    proof_parser.set_defaults(func=proof.proof_cmd)

    # --- verify command ---
    verify_parser = subparsers.add_parser(
        "verify",
        help="Verify claims-file proofs offline",
        description="Recompute leaves and check every proof (or one recipient's) against the root.",
    )
    verify_parser.add_argument("claims_file", type=str, help="Claims file written by build")
    verify_parser.add_argument(
        "recipient",
        type=str,
        nargs="?",
        default=None,
        help="Only verify this recipient (default: all)",
    )
    verify_parser.add_argument(
        "--root",
        type=str,
        default=None,
        help="Expected root, e.g. the published one (default: the file's own root)",
    )
    verify_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON report",
    )
    verify_parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Print tracebacks on error",
    )
    verify_parser.set_defaults(func=verify.verify_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage CLI configuration",
        description="Initialize or display configuration.",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        default=False,
        help="Create a template configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Show current configuration",
    )
    config_parser.add_argument(
        "--path",
        type=str,
        default=DEFAULT_CONFIG_NAME,
        help=f"Path for config file (default: {DEFAULT_CONFIG_NAME})",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        config_path = Path(args.path)
        if config_path.exists():
            print(f"Error: Config file already exists: {config_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

        config_path.write_text(get_default_config_template())
        print(f"Created configuration file: {config_path}")
        print("\nEdit this file to configure your settings.")
        print(f"You can also use environment variables ({ENV_PREFIX}* prefix).")
        return EXIT_SUCCESS

    if args.show:
        config = load_config(Path(args.path))
        print(json.dumps(asdict(config), indent=2))
        return EXIT_SUCCESS

    # Default: show help
    print("Usage: merkledrop config [--init|--show]")
    print("  --init  Create a template configuration file")
    print("  --show  Show current configuration")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=verification failed)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    # Load configuration
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    # Setup logging
    log_level = args.log_level or config.log_level
    setup_logging(level=log_level, log_file=config.log_file)

    # Attach config to args for commands to use
    args.cli_config = config
    if hasattr(args, "json") and not args.json:
        args.json = config.default_output_format == "json"

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if getattr(args, "debug", False):
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
