"""
Merkle Tree Unit Tests
Tests for core/merkle/merkle_tree.py

1. Root determinism and order sensitivity
2. Padding correctness - odd levels duplicate their last node
3. Proof verification for every index across tree sizes
4. Tamper detection - sibling, leaf, root and index
5. Empty leaves raise EmptyTreeError
6. Single leaf - root equals leaf
"""
import doctest

import pytest

from core.crypto.hashing import hash_concat, keccak256
from core.merkle import (
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
from core.schemas.errors import EmptyTreeError, IndexOutOfRangeError


def make_leaves(n: int) -> list[bytes]:
    return [keccak256(f"leaf-{i}".encode()) for i in range(n)]


class TestEmptyTree:
    """Tests for empty tree behavior."""

    def test_root_of_nothing_raises(self):
        with pytest.raises(EmptyTreeError):
            build_merkle_root([])

    def test_proof_of_nothing_raises(self):
        with pytest.raises(EmptyTreeError):
            build_merkle_proof([], 0)

    def test_tree_of_nothing_raises(self):
        with pytest.raises(EmptyTreeError):
            MerkleTree([])


class TestSingleLeaf:
    """Tests for single leaf tree behavior."""

    def test_single_leaf_root_equals_leaf(self):
        leaf = keccak256(b"single leaf")
        assert build_merkle_root([leaf]) == leaf

    def test_single_leaf_proof_no_siblings(self):
        leaf = keccak256(b"only one")
        proof = build_merkle_proof([leaf], 0)

        assert proof.leaf == leaf
        assert proof.index == 0
        assert proof.siblings == ()
        assert proof.root == leaf

    def test_single_leaf_proof_verifies(self):
        leaf = keccak256(b"single")
        assert verify_merkle_proof(build_merkle_proof([leaf], 0))

    def test_single_leaf_rejects_nonzero_index(self):
        leaf = keccak256(b"single")
        assert not verify_leaf(leaf, 1, (), leaf)


class TestRootConstruction:
    """Tests for root computation and padding."""

    def test_same_leaves_same_root(self):
        leaves = make_leaves(7)
        assert build_merkle_root(leaves) == build_merkle_root(list(leaves))

    def test_two_leaves(self):
        a, b = make_leaves(2)
        assert build_merkle_root([a, b]) == hash_concat(a, b)

    def test_order_is_significant(self):
        a, b = make_leaves(2)
        assert build_merkle_root([a, b]) != build_merkle_root([b, a])

    def test_odd_level_duplicates_last(self):
        a, b, c = make_leaves(3)
        expected = merkle_parent(merkle_parent(a, b), merkle_parent(c, c))
        assert build_merkle_root([a, b, c]) == expected

    def test_five_leaves_pad_at_every_odd_level(self):
        a, b, c, d, e = make_leaves(5)
        ab, cd, ee = merkle_parent(a, b), merkle_parent(c, d), merkle_parent(e, e)
        abcd, eeee = merkle_parent(ab, cd), merkle_parent(ee, ee)
        assert build_merkle_root([a, b, c, d, e]) == merkle_parent(abcd, eeee)

    def test_levels_shape(self):
        levels = build_merkle_levels(make_leaves(5))
        assert [len(level) for level in levels] == [5, 3, 2, 1]

    def test_tree_matches_functional_root(self):
        leaves = make_leaves(6)
        assert MerkleTree(leaves).root == build_merkle_root(leaves)


class TestProofs:
    """Proof generation and verification across tree sizes."""

    @pytest.mark.parametrize("n", [1, 2, 3, 4, 5, 7, 8, 9, 16, 17])
    def test_every_index_verifies(self, n):
        leaves = make_leaves(n)
        tree = MerkleTree(leaves)
        for i in range(n):
            proof = tree.proof(i)
            assert proof.leaf == leaves[i]
            assert MerkleTree.verify(leaves[i], proof, tree.root)
            assert verify_merkle_proof(proof, tree.root)

    @pytest.mark.parametrize("n", [1, 2, 3, 4, 5, 8, 9, 100])
    def test_proof_length_is_ceil_log2(self, n):
        tree = MerkleTree(make_leaves(n))
        expected = (n - 1).bit_length()
        assert len(tree.proof(n - 1).siblings) == expected
        assert tree.depth == expected + 1

    def test_padded_node_is_its_own_sibling(self):
        leaves = make_leaves(3)
        proof = build_merkle_proof(leaves, 2)
        assert proof.siblings[0] == leaves[2]

    def test_compute_root_from_proof(self):
        leaves = make_leaves(4)
        proof = build_merkle_proof(leaves, 3)
        assert compute_root_from_proof(leaves[3], 3, proof.siblings) == build_merkle_root(leaves)

    @pytest.mark.parametrize("index", [-1, 4, 10])
    def test_index_out_of_range(self, index):
        with pytest.raises(IndexOutOfRangeError) as exc_info:
            build_merkle_proof(make_leaves(4), index)
        assert isinstance(exc_info.value, IndexError)
        assert exc_info.value.details["size"] == 4

    def test_negative_index_rejected_by_proof_type(self):
        with pytest.raises(ValueError):
            MerkleProof(leaf=b"\x00" * 32, index=-1)


class TestTamperDetection:
    """A modified proof input never verifies."""

    @pytest.fixture
    def tree_and_leaves(self):
        leaves = make_leaves(6)
        return MerkleTree(leaves), leaves

    def test_tampered_sibling(self, tree_and_leaves):
        tree, leaves = tree_and_leaves
        proof = tree.proof(2)
        siblings = list(proof.siblings)
        siblings[1] = keccak256(b"evil")
        assert not verify_leaf(leaves[2], 2, siblings, tree.root)

    def test_wrong_leaf(self, tree_and_leaves):
        tree, _ = tree_and_leaves
        proof = tree.proof(2)
        assert not MerkleTree.verify(keccak256(b"evil"), proof, tree.root)

    def test_wrong_root(self, tree_and_leaves):
        tree, leaves = tree_and_leaves
        proof = tree.proof(2)
        assert not verify_merkle_proof(proof, keccak256(b"other root"))

    def test_wrong_index(self, tree_and_leaves):
        tree, leaves = tree_and_leaves
        proof = tree.proof(2)
        assert not verify_leaf(leaves[2], 3, proof.siblings, tree.root)

    def test_index_beyond_depth_rejected(self, tree_and_leaves):
        """High bits past the proof length would otherwise be ignored."""
        tree, leaves = tree_and_leaves
        proof = tree.proof(2)
        aliased = 2 + (1 << len(proof.siblings))
        assert not verify_leaf(leaves[2], aliased, proof.siblings, tree.root)

    def test_truncated_proof(self, tree_and_leaves):
        tree, leaves = tree_and_leaves
        proof = tree.proof(2)
        assert not verify_leaf(leaves[2], 2, proof.siblings[:-1], tree.root)


class TestTreeDepth:
    """Tests for compute_tree_depth()."""

    @pytest.mark.parametrize(
        "n,depth",
        [(0, 0), (1, 1), (2, 2), (3, 3), (4, 3), (5, 4), (8, 4), (9, 5)],
    )
    def test_depth(self, n, depth):
        assert compute_tree_depth(n) == depth


class TestProofSerialization:
    """Wire form of MerkleProof."""

    def test_to_dict_is_hex(self):
        leaves = make_leaves(3)
        data = build_merkle_proof(leaves, 1).to_dict()
        assert data["index"] == 1
        assert data["leaf"].startswith("0x")
        assert all(s.startswith("0x") and len(s) == 66 for s in data["siblings"])

    def test_from_dict_restores_a_verifiable_proof(self):
        leaves = make_leaves(5)
        proof = MerkleProof.from_dict(build_merkle_proof(leaves, 4).to_dict())
        assert verify_merkle_proof(proof, build_merkle_root(leaves))


class TestDocumentedExample:
    """The MerkleTree usage example runs as written."""

    def test_class_docstring_example(self):
        finder = doctest.DocTestFinder(recurse=False)
        runner = doctest.DocTestRunner()
        for test in finder.find(MerkleTree, "MerkleTree", globs={"MerkleTree": MerkleTree}):
            runner.run(test)
        results = runner.summarize(verbose=False)
        assert results.attempted == 4
        assert results.failed == 0
