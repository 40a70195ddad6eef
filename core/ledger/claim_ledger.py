"""
Claim Ledger

Authorizes partial, repeatable withdrawals against an allow-list commitment.

A claim passes these checks in order, each with its own error:
1. Shape: amounts and max_allocation have equal length     (ShapeMismatchError)
2. Proof: (recipient, max_allocation) is under the root    (InvalidProofError)
3. Per-call cap: amounts[i] <= max_allocation[i]           (ExceedsAllocationError)
4. Eligibility: oracle balance >= sum(max_allocation)      (InsufficientEligibilityError)
5. Cumulative cap: claimed[i] + amounts[i] <= max[i]       (CumulativeCapExceededError)
6. Fulfillment: sink.credit(recipient, amounts) succeeds   (FulfillmentFailedError)

Only after step 6 is the ledger updated. A rejected claim leaves the ledger
unchanged. A sink that raises leaves the outcome unknown: the ledger is still
unchanged, but the error is a non-retryable FulfillmentUnknownError carrying
the receipt ID the sink was given as its idempotency key.

Every mutating call holds the ledger lock for its whole read-check-call-write
sequence.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence, Union

from pydantic import ValidationError

from core.crypto.hashing import from_hex, keccak256, leaf_hash, normalize_address, to_hex
from core.merkle.merkle_tree import MerkleProof, verify_leaf
from core.schemas.allowlist import Commitment
from core.schemas.errors import (
    CollaboratorNotConfiguredError,
    CumulativeCapExceededError,
    ExceedsAllocationError,
    FulfillmentFailedError,
    FulfillmentUnknownError,
    InsufficientEligibilityError,
    InvalidProofError,
    LedgerPersistenceError,
    SchemaValidationException,
    ShapeMismatchError,
)
from core.schemas.ledger import ClaimReceipt, ClaimRecord

from .access import AccessPolicy, Capability, OpenAccessPolicy, require
from .collaborators import EligibilityOracle, FulfillmentSink
from .store import InMemoryLedgerStore, LedgerStore

logger = logging.getLogger(__name__)

ProofLike = Union[MerkleProof, Sequence[Union[bytes, str]]]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_amounts(values: Sequence[int], name: str) -> tuple[int, ...]:
    """Validate a vector of non-negative integers and freeze it."""
    result = []
    for i, value in enumerate(values):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise SchemaValidationException(
                message=f"{name}[{i}] must be a non-negative integer, got {value!r}",
                field_path=f"{name}[{i}]",
            )
        result.append(value)
    return tuple(result)


def _pad(vector: tuple[int, ...], length: int) -> tuple[int, ...]:
    return vector + (0,) * (length - len(vector)) if len(vector) < length else vector


def _as_siblings(proof: Sequence[Union[bytes, str]]) -> tuple[bytes, ...]:
    siblings = []
    for item in proof:
        if isinstance(item, str):
            try:
                item = from_hex(item)
            except ValueError as e:
                raise InvalidProofError(f"Malformed proof element: {e}") from e
        siblings.append(bytes(item))
    return tuple(siblings)


class ClaimLedger:
    """
    Per-recipient cumulative claim ledger gated by a Merkle commitment.

    Collaborators (oracle, sink) start unset unless given; a claim made
    while either is unset fails with CollaboratorNotConfiguredError.

    Example:
        >>> ledger = ClaimLedger(
        ...     commitment=allowlist.commitment(),
        ...     eligibility_oracle=StaticEligibilityOracle({addr: 3}),
        ...     fulfillment_sink=InMemoryFulfillmentSink(),
        ... )
        >>> proof = allowlist.proof_for(addr, [1, 1, 1])
        >>> ledger.claim([1, 0, 0], [1, 1, 1], addr, proof)
    """

    def __init__(
        self,
        store: Optional[LedgerStore] = None,
        *,
        commitment: Optional[Commitment] = None,
        eligibility_oracle: Optional[EligibilityOracle] = None,
        fulfillment_sink: Optional[FulfillmentSink] = None,
        access_policy: Optional[AccessPolicy] = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store if store is not None else InMemoryLedgerStore()
        self._oracle = eligibility_oracle
        self._sink = fulfillment_sink
        self._access = access_policy if access_policy is not None else OpenAccessPolicy()
        self._clock = clock
        self._lock = threading.RLock()
        if commitment is not None:
            self._store.set_commitment(commitment)

    # =========================================================================
    # Claim
    # =========================================================================

    def claim(
        self,
        amounts: Sequence[int],
        max_allocation: Sequence[int],
        recipient: str,
        proof: ProofLike,
        *,
        leaf_index: Optional[int] = None,
    ) -> ClaimReceipt:
        """
        Redeem ``amounts`` against the committed ``max_allocation``.

        Args:
            amounts: Amount to claim now, per category
            max_allocation: The allocation exactly as committed for ``recipient``
            recipient: Recipient address
            proof: A MerkleProof, or the sibling hashes alone (bytes or 0x-hex)
                   together with ``leaf_index``
            leaf_index: Leaf position; required when ``proof`` is a bare sequence
                        and ignored otherwise

        Returns:
            ClaimReceipt for the fulfilled claim

        Raises:
            ShapeMismatchError, InvalidProofError, ExceedsAllocationError,
            InsufficientEligibilityError, CumulativeCapExceededError,
            CollaboratorNotConfiguredError, FulfillmentFailedError:
                claim rejected, ledger unchanged
            FulfillmentUnknownError: the sink raised; ledger unchanged, but
                the credit may have been delivered
            LedgerPersistenceError: claim fulfilled and held in memory, but
                durable storage failed
        """
        with self._lock:
            try:
                return self._claim_locked(amounts, max_allocation, recipient, proof, leaf_index)
            except FulfillmentUnknownError:
                raise
            except (
                ShapeMismatchError,
                InvalidProofError,
                ExceedsAllocationError,
                InsufficientEligibilityError,
                CumulativeCapExceededError,
                CollaboratorNotConfiguredError,
                FulfillmentFailedError,
            ) as e:
                logger.warning(f"Claim rejected for {recipient}: [{e.code}] {e.message}")
                raise

    def _claim_locked(
        self,
        amounts: Sequence[int],
        max_allocation: Sequence[int],
        recipient: str,
        proof: ProofLike,
        leaf_index: Optional[int],
    ) -> ClaimReceipt:
        # 1. Shape
        amounts_now = _as_amounts(amounts, "amounts")
        allocation = _as_amounts(max_allocation, "max_allocation")
        if len(amounts_now) != len(allocation):
            raise ShapeMismatchError(
                f"amounts has {len(amounts_now)} categories, "
                f"max_allocation has {len(allocation)}",
                expected=len(allocation),
                actual=len(amounts_now),
            )
        recipient = normalize_address(recipient)

        # 2. Proof against the active root
        commitment = self._store.get_commitment()
        if commitment is None:
            raise InvalidProofError("No active commitment to verify against")
        if isinstance(proof, MerkleProof):
            index, siblings = proof.index, proof.siblings
        else:
            if leaf_index is None:
                raise InvalidProofError("leaf_index is required with a bare sibling list")
            index, siblings = leaf_index, _as_siblings(proof)
        leaf = leaf_hash(recipient, allocation)
        if not verify_leaf(leaf, index, siblings, commitment.root_bytes):
            raise InvalidProofError(
                f"Proof for {recipient} does not match root {commitment.root}",
                details={"recipient": recipient, "root": commitment.root, "index": index},
            )

        # 3. Single-call cap
        over = [i for i, (a, m) in enumerate(zip(amounts_now, allocation)) if a > m]
        if over:
            raise ExceedsAllocationError(
                f"Request exceeds allocation in categories {over}",
                details={
                    "recipient": recipient,
                    "categories": over,
                    "amounts": list(amounts_now),
                    "max_allocation": list(allocation),
                },
            )

        # 4. Live eligibility
        if self._oracle is None:
            raise CollaboratorNotConfiguredError("eligibility oracle")
        required = sum(allocation)
        available = self._oracle.balance_of(recipient)
        if available < required:
            raise InsufficientEligibilityError(recipient, required, available)

        # 5. Cumulative cap
        stored = self._store.get_claimed(recipient)
        claimed = _pad(stored, max(len(allocation), len(stored)))
        over = [
            i for i, (a, m) in enumerate(zip(amounts_now, allocation))
            if claimed[i] + a > m
        ]
        if over:
            raise CumulativeCapExceededError(
                f"Claim would exceed cumulative cap in categories {over}",
                details={
                    "recipient": recipient,
                    "categories": over,
                    "claimed": list(claimed),
                    "amounts": list(amounts_now),
                    "max_allocation": list(allocation),
                },
            )
        claimed_after = tuple(
            c + (amounts_now[i] if i < len(amounts_now) else 0)
            for i, c in enumerate(claimed)
        )

        # 6. Fulfillment, then the ledger update
        if self._sink is None:
            raise CollaboratorNotConfiguredError("fulfillment sink")
        receipt_id = self._receipt_id(recipient, amounts_now, commitment.root, claimed)
        try:
            fulfilled = self._sink.credit(recipient, amounts_now, idempotency_key=receipt_id)
        except FulfillmentFailedError:
            raise
        except Exception as e:
            # The credit may have landed before the sink raised
            logger.error(
                f"Fulfillment outcome unknown for {receipt_id} ({recipient} "
                f"+{list(amounts_now)}); reconcile with the sink before retrying: {e}"
            )
            raise FulfillmentUnknownError(
                f"Fulfillment sink raised for {recipient}: {e}",
                details={
                    "receipt_id": receipt_id,
                    "idempotency_key": receipt_id,
                    "recipient": recipient,
                    "amounts": list(amounts_now),
                    "claimed_before": list(claimed),
                },
            ) from e
        if not fulfilled:
            raise FulfillmentFailedError(
                f"Fulfillment sink declined credit for {recipient}",
                details={"recipient": recipient, "amounts": list(amounts_now)},
            )

        receipt = ClaimReceipt(
            receipt_id=receipt_id,
            recipient=recipient,
            amounts=amounts_now,
            max_allocation=allocation,
            root=commitment.root,
            claimed_after=claimed_after,
            timestamp=self._clock(),
        )
        try:
            self._store.commit_claim(recipient, claimed_after, receipt)
        except LedgerPersistenceError as e:
            logger.error(
                f"Claim {receipt.receipt_id} for {recipient} was fulfilled but not "
                f"persisted; reconcile claimed={list(claimed_after)}: {e.message}"
            )
            raise LedgerPersistenceError(
                f"Claim fulfilled but not persisted: {e.message}",
                details={
                    **e.details,
                    "receipt_id": receipt.receipt_id,
                    "recipient": recipient,
                    "claimed_after": list(claimed_after),
                },
            ) from e

        logger.info(
            f"Claim {receipt.receipt_id}: {recipient} +{list(amounts_now)} "
            f"-> {list(claimed_after)} of {list(allocation)}"
        )
        return receipt

    def _receipt_id(
        self,
        recipient: str,
        amounts: tuple[int, ...],
        root: str,
        claimed_before: tuple[int, ...],
    ) -> str:
        """
        Deterministic ID from the claim content and its position in history.

        A retry of an unrecorded attempt gets the same ID, which is what lets
        the sink use it as an idempotency key.
        """
        sequence = len(self._store.receipts())
        stable = f"{sequence}|{recipient}|{list(amounts)}|{root}|{list(claimed_before)}".encode()
        return f"rc_claim_{keccak256(stable).hex()[:12]}"

    # =========================================================================
    # Administration
    # =========================================================================

    def update_commitment(
        self,
        root: Union[bytes, str],
        metadata_pointer: str = "",
        *,
        caller: Optional[str] = None,
    ) -> Commitment:
        """
        Replace the active commitment.

        Claimed vectors are kept; they are checked against whatever
        allocation is proved under the new root.
        """
        with self._lock:
            require(self._access, Capability.MERKLE_SETTER, caller)
            try:
                commitment = Commitment(root=root, metadata_pointer=metadata_pointer)
            except ValidationError as e:
                raise SchemaValidationException(
                    message=f"Invalid commitment root: {root!r}",
                    field_path="root",
                    details={"errors": [err["msg"] for err in e.errors()]},
                ) from e
            previous = self._store.get_commitment()
            self._store.set_commitment(commitment)
            logger.info(
                f"Commitment updated: {previous.root if previous else None} -> {commitment.root}"
            )
            return commitment

    def set_eligibility_oracle(
        self,
        oracle: Optional[EligibilityOracle],
        *,
        caller: Optional[str] = None,
    ) -> None:
        """Bind (or with None, unset) the eligibility oracle for later claims."""
        with self._lock:
            require(self._access, Capability.ADMIN, caller)
            self._oracle = oracle
            logger.info(f"Eligibility oracle set to {type(oracle).__name__ if oracle else None}")

    def set_fulfillment_sink(
        self,
        sink: Optional[FulfillmentSink],
        *,
        caller: Optional[str] = None,
    ) -> None:
        """Bind (or with None, unset) the fulfillment sink for later claims."""
        with self._lock:
            require(self._access, Capability.ADMIN, caller)
            self._sink = sink
            logger.info(f"Fulfillment sink set to {type(sink).__name__ if sink else None}")

    def override_claimed(
        self,
        recipient: str,
        new_total: int,
        *,
        caller: Optional[str] = None,
    ) -> ClaimRecord:
        """
        Reset a recipient's recorded claims to an aggregate value.

        Zero clears every category. A positive total is placed in category 0
        with every other category zeroed; the previous per-category breakdown
        is discarded. The vector keeps its length.
        """
        with self._lock:
            require(self._access, Capability.CLAIMED_SETTER, caller)
            if isinstance(new_total, bool) or not isinstance(new_total, int) or new_total < 0:
                raise SchemaValidationException(
                    message=f"new_total must be a non-negative integer, got {new_total!r}",
                    field_path="new_total",
                )
            recipient = normalize_address(recipient)
            previous = self._store.get_claimed(recipient)
            length = max(len(previous), 1 if new_total else 0)
            claimed = _pad((new_total,) if new_total else (), length)
            self._store.set_claimed(recipient, claimed)
            logger.info(f"Claimed override for {recipient}: {list(previous)} -> {list(claimed)}")
            return ClaimRecord(recipient=recipient, claimed=claimed)

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def eligibility_oracle(self) -> Optional[EligibilityOracle]:
        return self._oracle

    @property
    def fulfillment_sink(self) -> Optional[FulfillmentSink]:
        return self._sink

    def get_commitment(self) -> Optional[Commitment]:
        with self._lock:
            return self._store.get_commitment()

    def get_claimed(self, recipient: str) -> tuple[int, ...]:
        with self._lock:
            return self._store.get_claimed(normalize_address(recipient))

    def get_claimed_total(self, recipient: str) -> int:
        """Sum of the recipient's claimed vector; 0 if nothing claimed."""
        return sum(self.get_claimed(recipient))

    def get_record(self, recipient: str) -> ClaimRecord:
        recipient = normalize_address(recipient)
        return ClaimRecord(recipient=recipient, claimed=self.get_claimed(recipient))

    def remaining(self, recipient: str, max_allocation: Sequence[int]) -> tuple[int, ...]:
        """What is still claimable per category under ``max_allocation``."""
        allocation = _as_amounts(max_allocation, "max_allocation")
        claimed = _pad(self.get_claimed(recipient), len(allocation))
        return tuple(max(m - c, 0) for m, c in zip(allocation, claimed))

    def claim_history(self, recipient: Optional[str] = None) -> list[ClaimReceipt]:
        with self._lock:
            receipts = self._store.receipts()
        if recipient is None:
            return receipts
        key = normalize_address(recipient)
        return [r for r in receipts if r.recipient == key]

    def snapshot(self) -> dict[str, tuple[int, ...]]:
        """Consistent copy of every recipient's claimed vector."""
        with self._lock:
            return self._store.all_claimed()


__all__ = [
    "ClaimLedger",
    "ProofLike",
]
