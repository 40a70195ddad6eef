"""
CLI Proof Command

Print a recipient's committed allocation and proof from a claims file.

Usage:
    merkledrop proof claims.json 0xRecipient [--json]
"""

from __future__ import annotations

import json
import sys
from argparse import Namespace

from core.allowlist import AllowListIOError, load_claims_file, proof_from_claims_file
from core.crypto.hashing import to_hex
from core.schemas.errors import NotInAllowListError
from core.schemas.versioning import UnsupportedSchemaVersionError


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1


def proof_cmd(args: Namespace) -> int:
    try:
        claims_file = load_claims_file(args.claims_file)
    except (FileNotFoundError, AllowListIOError, UnsupportedSchemaVersionError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        recipient, entry, proof = proof_from_claims_file(claims_file, args.recipient)
    except NotInAllowListError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    data = {
        "recipient": recipient,
        "index": entry.index,
        "allocation": list(entry.allocation),
        "leaf": to_hex(proof.leaf),
        "proof": list(entry.proof),
        "root": claims_file.root,
    }

    if args.json:
        print(json.dumps(data, indent=2))
    else:
        print(f"recipient: {recipient}")
        print(f"index: {entry.index}")
        print(f"allocation: {data['allocation']}")
        print(f"leaf: {data['leaf']}")
        print(f"root: {claims_file.root}")
        print(f"proof ({len(entry.proof)}):")
        for sibling in entry.proof:
            print(f"  {sibling}")

    return EXIT_SUCCESS
