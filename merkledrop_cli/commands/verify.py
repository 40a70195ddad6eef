"""
CLI Verify Command

Check claims-file proofs offline:
- Recompute each leaf from (recipient, allocation)
- Fold it up its sibling path
- Compare against the file's root, or an expected root given with --root

Usage:
    merkledrop verify claims.json [0xRecipient] [--root 0x...] [--json]

Without a recipient every entry is checked.
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import asdict, dataclass, field
from typing import Any

from core.allowlist import AllowListIOError, load_claims_file, proof_from_claims_file
from core.crypto.hashing import from_hex, to_hex
from core.merkle import verify_merkle_proof
from core.schemas.allowlist import ClaimsFile
from core.schemas.errors import NotInAllowListError
from core.schemas.versioning import UnsupportedSchemaVersionError


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


@dataclass
class VerifySummary:
    """Summary of claims-file verification for CLI output."""
    claims_file: str = ""
    root: str = ""
    checked: int = 0
    failed: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["ok"] = self.all_ok
        if not d["errors"]:
            del d["errors"]
        return d

    @property
    def all_ok(self) -> bool:
        return self.checked > 0 and not self.failed and not self.errors


def verify_entries(
    claims_file: ClaimsFile,
    recipients: list[str],
    root: bytes,
) -> tuple[int, list[str]]:
    """Verify each recipient's proof against ``root``; returns (checked, failed recipients)."""
    failed = []
    for recipient in recipients:
        key, _, proof = proof_from_claims_file(claims_file, recipient)
        if verify_merkle_proof(proof, root):
            logger.debug(f"Proof ok for {key}")
        else:
            logger.info(f"Proof failed for {key} at index {proof.index}")
            failed.append(key)
    return len(recipients), failed


def print_summary_human(summary: VerifySummary) -> None:
    """Print summary in human-readable format."""
    print(f"claims file: {summary.claims_file}")
    print(f"root: {summary.root}")
    print(f"checked: {summary.checked}")
    print(f"ok: {str(summary.all_ok).lower()}")

    if summary.failed:
        print(f"\nfailed ({len(summary.failed)}):")
        for recipient in summary.failed[:20]:
            print(f"  ✗ {recipient}")

    if summary.errors:
        print(f"\nerrors ({len(summary.errors)}):")
        for err in summary.errors[:10]:
            print(f"  ✗ {err}")


def verify_cmd(args: Namespace) -> int:
    """
    Execute the verify command.

    Returns:
        0 if every checked proof verifies, 2 if any does not, 1 on errors
    """
    try:
        claims_file = load_claims_file(args.claims_file)
    except (FileNotFoundError, AllowListIOError, UnsupportedSchemaVersionError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    expected = args.root or claims_file.root
    try:
        root = from_hex(expected)
    except ValueError as e:
        print(f"Error: invalid root {expected!r}: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    summary = VerifySummary(claims_file=str(args.claims_file), root=to_hex(root))
    recipients = [args.recipient] if args.recipient else list(claims_file.claims)

    try:
        summary.checked, summary.failed = verify_entries(claims_file, recipients, root)
    except NotInAllowListError as e:
        summary.errors.append(e.message)

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print_summary_human(summary)

    if summary.errors:
        return EXIT_RUNTIME_ERROR
    return EXIT_SUCCESS if summary.all_ok else EXIT_VERIFICATION_FAILED
