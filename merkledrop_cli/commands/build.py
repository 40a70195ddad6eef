"""
CLI Build Command

Commit an allow-list and write the claims file recipients use to claim.

Usage:
    merkledrop build allowlist.csv --out claims.json [--metadata ipfs://...] [--json]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from pathlib import Path

from core.allowlist import AllowListIOError, load_allowlist, save_claims_file
from core.schemas.errors import MerkleDropException


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1


def build_cmd(args: Namespace) -> int:
    """
    Execute the build command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code
    """
    config = getattr(args, "cli_config", None)
    out_path = Path(args.out or (config.claims_out if config else "claims.json"))
    metadata = args.metadata if args.metadata is not None else (config.metadata_pointer if config else "")

    try:
        allowlist = load_allowlist(args.allowlist)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except (AllowListIOError, MerkleDropException) as e:
        print(f"Error: invalid allow-list: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    claims_file = save_claims_file(allowlist, out_path, metadata)

    summary = {
        "out": str(out_path),
        "root": claims_file.root,
        "metadata_pointer": claims_file.metadata_pointer,
        "entries": len(claims_file.claims),
        "categories": claims_file.categories,
        "total_allocation": list(claims_file.total_allocation),
        "depth": allowlist.tree.depth,
    }

    if args.json:
        print(json.dumps(summary, indent=2))
    else:
        print(f"root: {summary['root']}")
        print(f"entries: {summary['entries']}")
        print(f"categories: {summary['categories']}")
        print(f"total_allocation: {summary['total_allocation']}")
        if metadata:
            print(f"metadata_pointer: {metadata}")
        print(f"claims file: {out_path}")

    return EXIT_SUCCESS
