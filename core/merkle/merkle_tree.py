"""
Merkle Tree Implementation
Deterministic Merkle tree construction, proof generation, and verification.

Commitment Rules (Hard Contracts):
1. Leaf hashing: leaf = keccak256(allocation words || address)
   - Implemented via core.crypto.hashing.leaf_hash()
2. Parent hashing: parent = keccak256(left + right), positional (never sorted)
3. Padding rule: Duplicate last node if odd number at any level
4. Empty leaves: rejected with EmptyTreeError
5. Single leaf: root = leaf, proof has no siblings

Determinism Notes:
- Leaf ordering is defined by the caller (allow-list entry order)
- This module never sorts leaves or pairs
- The low bit of the running index picks the side at each level, the
  same rule in build and verify
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from core.crypto.hashing import from_hex, hash_concat, to_hex
from core.schemas.errors import EmptyTreeError, IndexOutOfRangeError


@dataclass(frozen=True)
class MerkleProof:
    """
    A Merkle inclusion proof for a single leaf.

    Attributes:
        leaf: The leaf hash being proven (32 bytes)
        index: The 0-based position of the leaf in the committed order
        siblings: Sibling hashes from bottom to top of the tree
        root: The Merkle root this proof was generated against
    """
    leaf: bytes
    index: int
    siblings: tuple[bytes, ...] = field(default_factory=tuple)
    root: bytes = b""

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"Leaf index must be non-negative, got {self.index}")
        # Accept any sequence but store an immutable tuple
        object.__setattr__(self, "siblings", tuple(self.siblings))

    def to_dict(self) -> dict[str, Any]:
        """Wire form: hex strings for every digest."""
        return {
            "leaf": to_hex(self.leaf),
            "index": self.index,
            "siblings": [to_hex(s) for s in self.siblings],
            "root": to_hex(self.root),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MerkleProof":
        return cls(
            leaf=from_hex(data["leaf"]),
            index=int(data["index"]),
            siblings=tuple(from_hex(s) for s in data.get("siblings", [])),
            root=from_hex(data["root"]),
        )


def merkle_parent(left: bytes, right: bytes) -> bytes:
    """
    Compute the parent hash of two child nodes: keccak256(left + right).

    Order matters; the left child always comes first.
    """
    return hash_concat(left, right)


def _next_level(level: list[bytes]) -> list[bytes]:
    """Pair a level left-to-right, duplicating the last node if odd."""
    if len(level) % 2 == 1:
        level = level + [level[-1]]
    return [merkle_parent(level[i], level[i + 1]) for i in range(0, len(level), 2)]


def build_merkle_levels(leaves: Sequence[bytes]) -> list[list[bytes]]:
    """
    Build every level of the tree, leaves first, root last.

    Raises:
        EmptyTreeError: If leaves is empty
    """
    if len(leaves) == 0:
        raise EmptyTreeError("Cannot build a Merkle tree over zero leaves")

    levels: list[list[bytes]] = [list(leaves)]
    while len(levels[-1]) > 1:
        levels.append(_next_level(levels[-1]))
    return levels


def build_merkle_root(leaves: Sequence[bytes]) -> bytes:
    """
    Build a Merkle root from a sequence of leaf hashes.

    Padding Rule: Duplicate last node at each level if odd.
    Example: [a, b, c] -> [a, b, c, c] -> [parent(a,b), parent(c,c)]

    Raises:
        EmptyTreeError: If leaves is empty
    """
    return build_merkle_levels(leaves)[-1][0]


def _proof_from_levels(levels: list[list[bytes]], index: int) -> MerkleProof:
    size = len(levels[0])
    if index < 0 or index >= size:
        raise IndexOutOfRangeError(index, size)

    siblings: list[bytes] = []
    current_index = index
    for level in levels[:-1]:
        sibling_index = current_index ^ 1
        # The padded partner of an odd trailing node is the node itself
        if sibling_index >= len(level):
            sibling_index = current_index
        siblings.append(level[sibling_index])
        current_index //= 2

    return MerkleProof(
        leaf=levels[0][index],
        index=index,
        siblings=tuple(siblings),
        root=levels[-1][0],
    )


def build_merkle_proof(leaves: Sequence[bytes], index: int) -> MerkleProof:
    """
    Generate a Merkle proof for the leaf at the given index.

    Raises:
        EmptyTreeError: If leaves is empty
        IndexOutOfRangeError: If index is out of range
    """
    return _proof_from_levels(build_merkle_levels(leaves), index)


def compute_root_from_proof(leaf: bytes, index: int, siblings: Sequence[bytes]) -> bytes:
    """
    Recompute the root implied by a leaf, its index and its siblings.

    - If current index is even: hash = parent(hash, sibling)
    - If current index is odd: hash = parent(sibling, hash)
    """
    current_hash = leaf
    current_index = index
    for sibling in siblings:
        if current_index % 2 == 0:
            current_hash = merkle_parent(current_hash, sibling)
        else:
            current_hash = merkle_parent(sibling, current_hash)
        current_index //= 2
    return current_hash


def verify_leaf(
    leaf: bytes,
    index: int,
    siblings: Sequence[bytes],
    root: bytes,
) -> bool:
    """
    Verify that ``leaf`` sits at ``index`` under ``root``.

    An index with bits beyond the proof depth is rejected so a proof
    verifies for exactly one position.
    """
    if index < 0 or index >> len(siblings):
        return False
    return compute_root_from_proof(leaf, index, siblings) == root


def verify_merkle_proof(proof: MerkleProof, root: bytes | None = None) -> bool:
    """
    Verify a Merkle proof.

    Args:
        proof: MerkleProof to verify
        root: Root to check against; defaults to the root carried by the proof.
              Callers holding a trusted root should always pass it.
    """
    expected_root = proof.root if root is None else root
    return verify_leaf(proof.leaf, proof.index, proof.siblings, expected_root)


def compute_tree_depth(num_leaves: int) -> int:
    """
    Number of levels from leaves to root, inclusive.

    A single leaf has depth 1, two leaves depth 2, three or four depth 3.
    Returns 0 for an empty tree.
    """
    if num_leaves <= 0:
        return 0
    depth = 1
    n = num_leaves
    while n > 1:
        n = (n + 1) // 2
        depth += 1
    return depth


class MerkleTree:
    """
    An immutable Merkle tree over an ordered list of leaves.

    All levels are built once on construction, so proofs are served
    without rehashing. A changed leaf list means a new tree.

    Example:
        >>> from core.crypto.hashing import keccak256
        >>> tree = MerkleTree([keccak256(b"a"), keccak256(b"b"), keccak256(b"c")])
        >>> proof = tree.proof(2)
        >>> MerkleTree.verify(proof.leaf, proof, tree.root)
        True
    """

    def __init__(self, leaves: Sequence[bytes]) -> None:
        self._levels = build_merkle_levels(leaves)

    @property
    def root(self) -> bytes:
        return self._levels[-1][0]

    @property
    def leaves(self) -> tuple[bytes, ...]:
        return tuple(self._levels[0])

    @property
    def depth(self) -> int:
        return len(self._levels)

    def __len__(self) -> int:
        return len(self._levels[0])

    def proof(self, index: int) -> MerkleProof:
        """Proof for the leaf at ``index``; raises IndexOutOfRangeError."""
        return _proof_from_levels(self._levels, index)

    @staticmethod
    def verify(leaf: bytes, proof: MerkleProof, root: bytes) -> bool:
        """Check ``leaf`` against ``root`` using the siblings and index in ``proof``."""
        return verify_leaf(leaf, proof.index, proof.siblings, root)


__all__ = [
    "MerkleProof",
    "MerkleTree",
    "merkle_parent",
    "build_merkle_levels",
    "build_merkle_root",
    "build_merkle_proof",
    "compute_root_from_proof",
    "verify_leaf",
    "verify_merkle_proof",
    "compute_tree_depth",
]
