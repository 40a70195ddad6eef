"""
Allow-List Commitment

Maps (recipient, allocation) entries to Merkle leaves, builds the tree and
answers proof queries. The entry order given by the caller is the canonical
leaf order; recipients either regenerate it or use ``index_of``.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, Mapping, Sequence, Union

from pydantic import ValidationError

from core.crypto.hashing import leaf_hash, normalize_address, to_hex
from core.merkle.merkle_tree import MerkleProof, MerkleTree
from core.schemas.allowlist import AllowListEntry, Commitment
from core.schemas.errors import (
    DuplicateRecipientError,
    EmptyTreeError,
    NotInAllowListError,
    SchemaValidationException,
    ShapeMismatchError,
)

logger = logging.getLogger(__name__)

EntryLike = Union[AllowListEntry, Mapping[str, Any], tuple[str, Sequence[int]]]


def coerce_entry(raw: EntryLike, position: int = 0) -> AllowListEntry:
    """
    Build an AllowListEntry from an entry, a mapping or a (recipient, allocation) pair.

    Raises:
        SchemaValidationException: If the recipient or allocation is invalid.
    """
    if isinstance(raw, AllowListEntry):
        return raw
    try:
        if isinstance(raw, Mapping):
            return AllowListEntry.model_validate(raw)
        recipient, allocation = raw
        return AllowListEntry(recipient=recipient, allocation=tuple(allocation))
    except ValidationError as e:
        raise SchemaValidationException(
            message=f"Invalid allow-list entry at position {position}",
            field_path=f"entries[{position}]",
            details={"errors": [err["msg"] for err in e.errors()]},
        ) from e
    except (TypeError, ValueError) as e:
        raise SchemaValidationException(
            message=f"Malformed allow-list entry at position {position}: {e}",
            field_path=f"entries[{position}]",
        ) from e


class AllowList:
    """
    An immutable allow-list committed into a Merkle tree.

    Invariants checked on construction:
    - at least one entry (EmptyTreeError)
    - every allocation has the same number of categories (ShapeMismatchError)
    - each recipient appears once (DuplicateRecipientError)

    Example:
        >>> allowlist = AllowList.from_entries([(addr_a, [1, 1, 1]), (addr_b, [2, 0, 1])])
        >>> proof = allowlist.proof_for(addr_a, [1, 1, 1])
        >>> commitment = allowlist.commitment("ipfs://...")
    """

    def __init__(self, entries: Sequence[AllowListEntry]) -> None:
        if len(entries) == 0:
            raise EmptyTreeError("Allow-list must contain at least one entry")

        categories = len(entries[0].allocation)
        index_by_recipient: dict[str, int] = {}
        for i, entry in enumerate(entries):
            if len(entry.allocation) != categories:
                raise ShapeMismatchError(
                    f"Entry {i} for {entry.recipient} has {len(entry.allocation)} "
                    f"categories, expected {categories}",
                    expected=categories,
                    actual=len(entry.allocation),
                )
            if entry.recipient in index_by_recipient:
                raise DuplicateRecipientError(
                    entry.recipient, index_by_recipient[entry.recipient], i
                )
            index_by_recipient[entry.recipient] = i

        self._entries: tuple[AllowListEntry, ...] = tuple(entries)
        self._categories = categories
        self._index_by_recipient = index_by_recipient
        leaves = [leaf_hash(e.recipient, e.allocation) for e in self._entries]
        self._index_by_leaf = {leaf: i for i, leaf in enumerate(leaves)}
        self._tree = MerkleTree(leaves)

        logger.debug(
            "Built allow-list: %d entries, %d categories, root %s",
            len(self._entries), categories, self.root_hex,
        )

    @classmethod
    def from_entries(cls, entries: Iterable[EntryLike]) -> "AllowList":
        """Build an allow-list from entries, mappings or (recipient, allocation) pairs."""
        return cls([coerce_entry(raw, i) for i, raw in enumerate(entries)])

    # ------------------------------------------------------------------ views

    @property
    def root(self) -> bytes:
        return self._tree.root

    @property
    def root_hex(self) -> str:
        return to_hex(self._tree.root)

    @property
    def tree(self) -> MerkleTree:
        return self._tree

    @property
    def entries(self) -> tuple[AllowListEntry, ...]:
        return self._entries

    @property
    def categories(self) -> int:
        """Number of entitlement categories shared by every entry."""
        return self._categories

    @property
    def total_allocation(self) -> tuple[int, ...]:
        """Per-category sum of every allocation in the list."""
        return tuple(
            sum(entry.allocation[i] for entry in self._entries)
            for i in range(self._categories)
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[AllowListEntry]:
        return iter(self._entries)

    def __contains__(self, recipient: object) -> bool:
        if not isinstance(recipient, str):
            return False
        try:
            return normalize_address(recipient) in self._index_by_recipient
        except SchemaValidationException:
            return False

    # ---------------------------------------------------------------- lookups

    def index_of(self, recipient: str) -> int:
        """Leaf position of ``recipient``; raises NotInAllowListError."""
        try:
            key = normalize_address(recipient)
        except SchemaValidationException:
            raise NotInAllowListError(str(recipient)) from None
        if key not in self._index_by_recipient:
            raise NotInAllowListError(key)
        return self._index_by_recipient[key]

    def entry_for(self, recipient: str) -> AllowListEntry:
        return self._entries[self.index_of(recipient)]

    def proof_for(self, recipient: str, allocation: Sequence[int]) -> MerkleProof:
        """
        Proof for an exact (recipient, allocation) pair.

        The candidate leaf is recomputed and located among the committed
        leaves, so a wrong allocation fails just like an unknown recipient.

        Raises:
            NotInAllowListError: If no committed leaf matches
        """
        try:
            leaf = leaf_hash(recipient, allocation)
        except SchemaValidationException:
            raise NotInAllowListError(str(recipient), list(allocation)) from None
        index = self._index_by_leaf.get(leaf)
        if index is None:
            raise NotInAllowListError(normalize_address(recipient), list(allocation))
        return self._tree.proof(index)

    def proof_for_recipient(self, recipient: str) -> tuple[AllowListEntry, MerkleProof]:
        """Look up the committed allocation for ``recipient`` and return it with its proof."""
        index = self.index_of(recipient)
        return self._entries[index], self._tree.proof(index)

    def commitment(self, metadata_pointer: str = "") -> Commitment:
        """The publishable (root, metadata pointer) pair for this list."""
        return Commitment(root=self.root_hex, metadata_pointer=metadata_pointer)
