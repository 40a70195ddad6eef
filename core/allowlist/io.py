"""
Allow-List IO

Read allow-lists from JSON or CSV and publish claims files.

Input formats:
- JSON: ``[{"recipient": "0x...", "allocation": [1, 1, 1]}, ...]``
  (a top-level ``{"entries": [...]}`` object is also accepted)
- CSV: header ``recipient,allocation`` with ``;``-separated amounts,
  e.g. ``0xabc...,1;1;1``

Output (claims file): the commitment plus every entry's index,
allocation and proof. See ``core.schemas.allowlist.ClaimsFile``.
"""

from __future__ import annotations

import csv
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from core.crypto.hashing import from_hex, leaf_hash, to_hex
from core.merkle.merkle_tree import MerkleProof
from core.schemas.allowlist import AllowListEntry, ClaimsFile, ClaimsFileEntry
from core.schemas.canonical import dumps_canonical
from core.schemas.errors import NotInAllowListError, SchemaValidationException
from core.schemas.versioning import assert_supported_schema_version

from .commitment import AllowList, coerce_entry

logger = logging.getLogger(__name__)

# Separator between amounts in the CSV allocation column
CSV_ALLOCATION_SEPARATOR = ";"


class AllowListIOError(Exception):
    """Error reading or writing allow-list files."""
    pass


def _parse_amount(raw: str, line: int) -> int:
    text = raw.strip()
    if not text.isdigit():
        raise SchemaValidationException(
            message=f"Line {line}: amount must be a non-negative integer, got {raw!r}",
            field_path=f"line[{line}].allocation",
        )
    return int(text)


def read_entries_csv(path: Path) -> list[AllowListEntry]:
    """Read ``recipient,allocation`` rows; blank rows are skipped."""
    entries: list[AllowListEntry] = []
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        fields = reader.fieldnames or []
        if "recipient" not in fields or "allocation" not in fields:
            raise AllowListIOError(
                f"{path}: CSV needs header 'recipient,allocation', got {fields}"
            )
        for line, row in enumerate(reader, start=2):
            recipient = (row.get("recipient") or "").strip()
            allocation_text = (row.get("allocation") or "").strip()
            if not recipient and not allocation_text:
                continue
            allocation = tuple(
                _parse_amount(part, line)
                for part in allocation_text.split(CSV_ALLOCATION_SEPARATOR)
            )
            entries.append(coerce_entry((recipient, allocation), len(entries)))
    return entries


def read_entries_json(path: Path) -> list[AllowListEntry]:
    """Read a JSON list of entries (or an object with an ``entries`` list)."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("entries")
    if not isinstance(data, list):
        raise AllowListIOError(f"{path}: expected a list of entries")
    return [coerce_entry(raw, i) for i, raw in enumerate(data)]


def load_allowlist(path: str | Path) -> AllowList:
    """
    Load an allow-list file and build its commitment.

    The format is chosen by extension: ``.csv`` reads CSV, anything
    else is parsed as JSON.

    Raises:
        FileNotFoundError: If the file does not exist
        AllowListIOError: If the file structure is wrong
        SchemaValidationException: If an entry is invalid
        DuplicateRecipientError / ShapeMismatchError / EmptyTreeError
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Allow-list file not found: {path}")

    if path.suffix.lower() == ".csv":
        entries = read_entries_csv(path)
    else:
        entries = read_entries_json(path)

    logger.info(f"Loaded {len(entries)} allow-list entries from {path}")
    return AllowList(entries)


def build_claims_file(allowlist: AllowList, metadata_pointer: str = "") -> ClaimsFile:
    """Collect the commitment and every entry's proof into a ClaimsFile."""
    claims: dict[str, ClaimsFileEntry] = {}
    for index, entry in enumerate(allowlist.entries):
        proof = allowlist.tree.proof(index)
        claims[entry.recipient] = ClaimsFileEntry(
            index=index,
            allocation=entry.allocation,
            proof=tuple(to_hex(s) for s in proof.siblings),
        )
    return ClaimsFile(
        root=allowlist.root_hex,
        metadata_pointer=metadata_pointer,
        categories=allowlist.categories,
        total_allocation=allowlist.total_allocation,
        claims=claims,
    )


def write_json_atomic(path: Path, payload: Any) -> None:
    """
    Write canonical, indented JSON via a temp file and ``os.replace``.

    A reader never observes a half-written file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    content = dumps_canonical(payload, indent=2) + "\n"
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def save_claims_file(
    allowlist: AllowList,
    path: str | Path,
    metadata_pointer: str = "",
) -> ClaimsFile:
    """Build and atomically write the claims file; returns what was written."""
    claims_file = build_claims_file(allowlist, metadata_pointer)
    write_json_atomic(Path(path), claims_file)
    logger.info(f"Wrote claims file for root {claims_file.root} to {path}")
    return claims_file


def load_claims_file(path: str | Path) -> ClaimsFile:
    """
    Read a claims file written by ``save_claims_file``.

    Raises:
        FileNotFoundError: If the file does not exist
        AllowListIOError: If the content does not match the schema
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Claims file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    try:
        claims_file = ClaimsFile.model_validate(data)
    except ValidationError as e:
        raise AllowListIOError(f"{path}: invalid claims file: {e}") from e
    assert_supported_schema_version(claims_file.schema_version)
    return claims_file


def proof_from_claims_file(claims_file: ClaimsFile, recipient: str) -> tuple[str, ClaimsFileEntry, MerkleProof]:
    """
    Rebuild the MerkleProof for ``recipient`` from a published claims file.

    The leaf is recomputed from the listed allocation, never read from disk.

    Raises:
        NotInAllowListError: If the recipient is not in the file
    """
    found = claims_file.entry_for(recipient)
    if found is None:
        raise NotInAllowListError(str(recipient))
    key, entry = found
    proof = MerkleProof(
        leaf=leaf_hash(key, entry.allocation),
        index=entry.index,
        siblings=tuple(from_hex(s) for s in entry.proof),
        root=from_hex(claims_file.root),
    )
    return key, entry, proof
