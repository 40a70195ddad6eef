"""
Ledger Stores

Holds the claim ledger's state: the active commitment, each recipient's
cumulative claimed vector and the receipt history.

- InMemoryLedgerStore: process-local dicts
- JsonFileLedgerStore: the same state mirrored to a JSON file, rewritten
  atomically after every mutation, with receipts in an append-only journal

Stores do no locking of their own; the ClaimLedger serializes access.
"""

from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from core.allowlist.io import write_json_atomic
from core.schemas.allowlist import Commitment
from core.schemas.canonical import dumps_canonical
from core.schemas.errors import LedgerPersistenceError
from core.schemas.ledger import ClaimReceipt
from core.schemas.versioning import SCHEMA_VERSION, assert_supported_schema_version

logger = logging.getLogger(__name__)


class LedgerStore(ABC):
    """State backing a ClaimLedger. Recipients are checksummed addresses."""

    @abstractmethod
    def get_commitment(self) -> Optional[Commitment]:
        ...

    @abstractmethod
    def set_commitment(self, commitment: Optional[Commitment]) -> None:
        ...

    @abstractmethod
    def get_claimed(self, recipient: str) -> tuple[int, ...]:
        """Cumulative claimed vector; empty tuple if nothing claimed yet."""
        ...

    @abstractmethod
    def set_claimed(self, recipient: str, claimed: tuple[int, ...]) -> None:
        ...

    @abstractmethod
    def all_claimed(self) -> dict[str, tuple[int, ...]]:
        ...

    @abstractmethod
    def receipts(self) -> list[ClaimReceipt]:
        ...

    @abstractmethod
    def commit_claim(self, recipient: str, claimed: tuple[int, ...], receipt: ClaimReceipt) -> None:
        """Record the new cumulative vector and its receipt as one update."""
        ...


class InMemoryLedgerStore(LedgerStore):

    def __init__(self) -> None:
        self._commitment: Optional[Commitment] = None
        self._claimed: dict[str, tuple[int, ...]] = {}
        self._receipts: list[ClaimReceipt] = []

    def get_commitment(self) -> Optional[Commitment]:
        return self._commitment

    def set_commitment(self, commitment: Optional[Commitment]) -> None:
        self._commitment = commitment

    def get_claimed(self, recipient: str) -> tuple[int, ...]:
        return self._claimed.get(recipient, ())

    def set_claimed(self, recipient: str, claimed: tuple[int, ...]) -> None:
        self._claimed[recipient] = tuple(claimed)

    def all_claimed(self) -> dict[str, tuple[int, ...]]:
        return dict(self._claimed)

    def receipts(self) -> list[ClaimReceipt]:
        return list(self._receipts)

    def commit_claim(self, recipient: str, claimed: tuple[int, ...], receipt: ClaimReceipt) -> None:
        self._claimed[recipient] = tuple(claimed)
        self._receipts.append(receipt)


def _parse_claimed(vector) -> tuple[int, ...]:
    """A stored claimed vector: a list of non-negative integers."""
    if not isinstance(vector, list):
        raise TypeError(f"claimed vector must be a list, got {type(vector).__name__}")
    for value in vector:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError(f"claimed vector holds {value!r}, not a non-negative integer")
    return tuple(vector)


class JsonFileLedgerStore(InMemoryLedgerStore):
    """
    In-memory state mirrored to a JSON file plus a receipt journal.

    The state file holds the commitment and the claimed vectors and is
    rewritten atomically after every mutation, so each write costs
    O(recipients). Receipts go to an append-only JSON-lines journal beside
    it (``ledger.json`` -> ``ledger.receipts.jsonl``), so the history is never
    rewritten.

    A claim writes the state file first, then appends its receipt. A crash in
    between can lose a receipt line but never a claimed amount. If a write
    fails, memory keeps the new state and LedgerPersistenceError is raised,
    so the running process never forgets a claim it fulfilled; receipts not
    yet journaled are appended by the next successful commit.

    File layout:
        ledger.json:           {"schema_version": "v1", "commitment": {...} | null,
                                "claimed": {"0x...": [1, 0, 2]}}
        ledger.receipts.jsonl: one ClaimReceipt object per line
    """

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)
        self.receipts_path = self.path.with_suffix(".receipts.jsonl")
        self._journaled = 0
        if self.path.exists():
            self._load()
        if self.receipts_path.exists():
            self._load_receipts()

    def _corrupt(self, path: Path, reason: str) -> LedgerPersistenceError:
        return LedgerPersistenceError(
            f"Ledger file {path} is corrupt: {reason}",
            details={"path": str(path)},
        )

    def _load(self) -> None:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise LedgerPersistenceError(
                f"Ledger file {self.path} is not valid JSON: {e}",
                details={"path": str(self.path)},
            ) from e
        if not isinstance(data, dict):
            raise self._corrupt(self.path, "expected an object")
        assert_supported_schema_version(data.get("schema_version", SCHEMA_VERSION))
        try:
            commitment = data.get("commitment")
            self._commitment = Commitment.model_validate(commitment) if commitment else None
            self._claimed = {
                recipient: _parse_claimed(vector)
                for recipient, vector in data.get("claimed", {}).items()
            }
        except (ValidationError, TypeError, ValueError, AttributeError) as e:
            raise self._corrupt(self.path, str(e)) from e
        logger.info(f"Loaded ledger from {self.path}: {len(self._claimed)} recipients")

    def _load_receipts(self) -> None:
        raw = self.receipts_path.read_bytes()
        complete, _, torn = raw.rpartition(b"\n")
        if torn:
            # An append interrupted mid-line; the claimed state already counts it
            logger.warning(
                f"Dropping incomplete last line of {self.receipts_path} ({len(torn)} bytes)"
            )
            with open(self.receipts_path, "r+b") as f:
                f.truncate(len(complete) + 1 if complete else 0)
        receipts = []
        text = complete.decode("utf-8", errors="replace")
        for number, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                receipts.append(ClaimReceipt.model_validate(json.loads(line)))
            except (ValidationError, ValueError) as e:
                raise self._corrupt(self.receipts_path, f"line {number}: {e}") from e
        self._receipts = receipts
        self._journaled = len(receipts)
        logger.info(f"Loaded {len(receipts)} receipts from {self.receipts_path}")

    def _flush(self) -> None:
        payload = {
            "schema_version": SCHEMA_VERSION,
            "commitment": self._commitment,
            "claimed": self._claimed,
        }
        try:
            write_json_atomic(self.path, payload)
        except OSError as e:
            raise LedgerPersistenceError(
                f"Failed to write ledger file {self.path}: {e}",
                details={"path": str(self.path)},
            ) from e

    def _append_receipts(self) -> None:
        pending = self._receipts[self._journaled:]
        if not pending:
            return
        lines = "".join(dumps_canonical(r) + "\n" for r in pending)
        try:
            with open(self.receipts_path, "a", encoding="utf-8") as f:
                f.write(lines)
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            raise LedgerPersistenceError(
                f"Failed to append to receipt journal {self.receipts_path}: {e}",
                details={"path": str(self.receipts_path)},
            ) from e
        self._journaled = len(self._receipts)

    def set_commitment(self, commitment: Optional[Commitment]) -> None:
        super().set_commitment(commitment)
        self._flush()

    def set_claimed(self, recipient: str, claimed: tuple[int, ...]) -> None:
        super().set_claimed(recipient, claimed)
        self._flush()

    def commit_claim(self, recipient: str, claimed: tuple[int, ...], receipt: ClaimReceipt) -> None:
        super().commit_claim(recipient, claimed, receipt)
        self._flush()
        self._append_receipts()
