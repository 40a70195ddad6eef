"""
Merkle Tree and Commitments
Deterministic Merkle tree construction + proof generation/verification.

This module provides:
- MerkleProof: Dataclass representing a Merkle inclusion proof
- MerkleTree: Immutable tree with root and per-index proofs
- build_merkle_root: Compute root from leaf hashes
- build_merkle_proof: Generate proof for a specific leaf
- verify_merkle_proof / verify_leaf: Verify a proof against a root

Commitment Rules:
1. Leaf hashing: keccak256(allocation words || address)
2. Parent hashing: keccak256(left + right)
3. Padding: Duplicate last node if odd number at any level
4. Empty tree: EmptyTreeError
5. Single leaf: root = leaf

Usage:
    from core.merkle import MerkleTree
    from core.crypto import leaf_hash

    leaves = [leaf_hash(addr, alloc) for addr, alloc in entries]
    tree = MerkleTree(leaves)
    proof = tree.proof(2)
    assert MerkleTree.verify(leaves[2], proof, tree.root)
"""
from .merkle_tree import (
    MerkleProof,
    MerkleTree,
    build_merkle_levels,
    build_merkle_proof,
    build_merkle_root,
    compute_root_from_proof,
    compute_tree_depth,
    merkle_parent,
    verify_leaf,
    verify_merkle_proof,
)


__all__ = [
    # Core types
    "MerkleProof",
    "MerkleTree",
    # Core functions
    "merkle_parent",
    "build_merkle_levels",
    "build_merkle_root",
    "build_merkle_proof",
    "compute_root_from_proof",
    "verify_leaf",
    "verify_merkle_proof",
    "compute_tree_depth",
]
