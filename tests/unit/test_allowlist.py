"""
Allow-List Commitment Unit Tests
Tests for core/allowlist/commitment.py and core/schemas/allowlist.py
"""
import pytest
from eth_utils import to_checksum_address
from pydantic import ValidationError

from core.allowlist import AllowList
from core.crypto.hashing import leaf_hash, to_hex
from core.merkle import MerkleTree, build_merkle_root, verify_merkle_proof
from core.schemas.allowlist import AllowListEntry, Commitment
from core.schemas.errors import (
    DuplicateRecipientError,
    EmptyTreeError,
    NotInAllowListError,
    SchemaValidationException,
    ShapeMismatchError,
)
from fixtures.common import ALICE, BOB, CAROL, DAVE, DEFAULT_ENTRIES, EVE, make_allowlist


class TestConstruction:
    """Building an AllowList and its invariants."""

    def test_root_is_tree_of_leaf_hashes(self):
        allowlist = make_allowlist()
        leaves = [leaf_hash(r, a) for r, a in DEFAULT_ENTRIES]
        assert allowlist.root == build_merkle_root(leaves)
        assert allowlist.root_hex == to_hex(allowlist.root)

    def test_accepts_mappings_and_models(self):
        from_tuples = make_allowlist()
        from_dicts = AllowList.from_entries(
            [{"recipient": r, "allocation": a} for r, a in DEFAULT_ENTRIES]
        )
        from_models = AllowList([AllowListEntry(recipient=r, allocation=a) for r, a in DEFAULT_ENTRIES])
        assert from_tuples.root == from_dicts.root == from_models.root

    def test_entry_order_is_leaf_order(self):
        forward = make_allowlist()
        backward = make_allowlist(list(reversed(DEFAULT_ENTRIES)))
        assert forward.root != backward.root
        assert backward.index_of(ALICE) == len(DEFAULT_ENTRIES) - 1

    def test_empty_raises(self):
        with pytest.raises(EmptyTreeError):
            AllowList.from_entries([])

    def test_duplicate_recipient_raises(self):
        """Two spellings of one address are the same recipient."""
        with pytest.raises(DuplicateRecipientError) as exc_info:
            make_allowlist([(ALICE, [1]), (BOB, [1]), (to_checksum_address(ALICE), [2])])
        assert exc_info.value.details["first_index"] == 0
        assert exc_info.value.details["second_index"] == 2

    def test_shape_mismatch_raises(self):
        with pytest.raises(ShapeMismatchError) as exc_info:
            make_allowlist([(ALICE, [1, 1, 1]), (BOB, [1, 1])])
        assert exc_info.value.details == {"expected": 3, "actual": 2}

    def test_invalid_recipient_raises(self):
        with pytest.raises(SchemaValidationException) as exc_info:
            make_allowlist([("0x1234", [1])])
        assert exc_info.value.details["field_path"] == "entries[0]"

    def test_negative_amount_raises(self):
        with pytest.raises(SchemaValidationException):
            make_allowlist([(ALICE, [1, -1])])

    def test_malformed_entry_raises(self):
        with pytest.raises(SchemaValidationException):
            AllowList.from_entries([(ALICE,)])


class TestViews:
    """Read-only views over the allow-list."""

    def test_len_iter_contains(self, allowlist):
        assert len(allowlist) == 4
        assert [e.recipient for e in allowlist] == [
            to_checksum_address(r) for r, _ in DEFAULT_ENTRIES
        ]
        assert ALICE in allowlist
        assert to_checksum_address(BOB) in allowlist
        assert EVE not in allowlist
        assert "garbage" not in allowlist
        assert 42 not in allowlist

    def test_categories_and_totals(self, allowlist):
        assert allowlist.categories == 3
        assert allowlist.total_allocation == (6, 9, 5)

    def test_entry_for(self, allowlist):
        entry = allowlist.entry_for(CAROL)
        assert entry.allocation == (0, 5, 0)
        assert entry.total == 5

    def test_index_of_unknown_raises(self, allowlist):
        with pytest.raises(NotInAllowListError):
            allowlist.index_of(EVE)
        with pytest.raises(NotInAllowListError):
            allowlist.index_of("not-an-address")

    def test_commitment(self, allowlist):
        commitment = allowlist.commitment("ipfs://QmList")
        assert commitment.root == allowlist.root_hex
        assert commitment.root_bytes == allowlist.root
        assert commitment.metadata_pointer == "ipfs://QmList"


class TestProofFor:
    """Proof lookup by (recipient, allocation)."""

    @pytest.mark.parametrize("recipient,allocation", DEFAULT_ENTRIES)
    def test_every_entry_proves(self, allowlist, recipient, allocation):
        proof = allowlist.proof_for(recipient, allocation)
        assert proof.leaf == leaf_hash(recipient, allocation)
        assert verify_merkle_proof(proof, allowlist.root)

    def test_checksummed_recipient_finds_the_same_leaf(self, allowlist):
        proof = allowlist.proof_for(to_checksum_address(DAVE), [3, 3, 3])
        assert proof.index == 3

    def test_wrong_allocation_is_not_in_list(self, allowlist):
        with pytest.raises(NotInAllowListError) as exc_info:
            allowlist.proof_for(ALICE, [2, 2, 2])
        assert exc_info.value.details["allocation"] == [2, 2, 2]

    def test_unknown_recipient_is_not_in_list(self, allowlist):
        with pytest.raises(NotInAllowListError):
            allowlist.proof_for(EVE, [1, 1, 1])

    def test_proof_for_recipient(self, allowlist):
        entry, proof = allowlist.proof_for_recipient(BOB)
        assert entry.allocation == (2, 0, 1)
        assert MerkleTree.verify(leaf_hash(BOB, entry.allocation), proof, allowlist.root)


class TestSchemas:
    """Validation on the allow-list schemas."""

    def test_entry_normalizes_recipient(self):
        entry = AllowListEntry(recipient=ALICE, allocation=(1,))
        assert entry.recipient == to_checksum_address(ALICE)

    def test_entry_is_frozen(self):
        entry = AllowListEntry(recipient=ALICE, allocation=(1,))
        with pytest.raises(ValidationError):
            entry.allocation = (2,)

    def test_entry_forbids_extra_fields(self):
        with pytest.raises(ValidationError):
            AllowListEntry(recipient=ALICE, allocation=(1,), note="x")

    def test_commitment_accepts_bytes(self):
        root = b"\xab" * 32
        assert Commitment(root=root).root == "0x" + "ab" * 32

    def test_commitment_lowercases_hex(self):
        assert Commitment(root="0x" + "AB" * 32).root == "0x" + "ab" * 32

    @pytest.mark.parametrize("bad", ["0x1234", "ab" * 32, "0x" + "zz" * 32, 7])
    def test_commitment_rejects_bad_roots(self, bad):
        with pytest.raises(ValidationError):
            Commitment(root=bad)
