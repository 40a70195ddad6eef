"""
Ledger Store Unit Tests
Tests for core/ledger/store.py

- JSON file store survives a restart
- Corrupt files are refused
- A failed write keeps memory state and raises LedgerPersistenceError
"""
import json

import pytest
from eth_utils import to_checksum_address

from core.ledger import JsonFileLedgerStore
from core.schemas.errors import CumulativeCapExceededError, LedgerPersistenceError
from core.schemas.versioning import UnsupportedSchemaVersionError
from fixtures.common import ALICE, BOB, make_ledger


def claim(ledger, allowlist, recipient, amounts, allocation):
    return ledger.claim(amounts, allocation, recipient, allowlist.proof_for(recipient, allocation))


class TestJsonFileLedgerStore:
    """Round trips through the JSON ledger file."""

    def test_state_survives_restart(self, allowlist, tmp_path):
        path = tmp_path / "ledger.json"
        ledger, _, _ = make_ledger(allowlist, store=JsonFileLedgerStore(path))
        claim(ledger, allowlist, ALICE, [1, 0, 0], [1, 1, 1])
        claim(ledger, allowlist, BOB, [2, 0, 0], [2, 0, 1])

        reopened = JsonFileLedgerStore(path)
        assert reopened.get_commitment() == allowlist.commitment("ipfs://test-metadata")
        assert reopened.get_claimed(to_checksum_address(ALICE)) == (1, 0, 0)
        assert reopened.get_claimed(to_checksum_address(BOB)) == (2, 0, 0)
        assert [r.receipt_id for r in reopened.receipts()] == [
            r.receipt_id for r in ledger.claim_history()
        ]

    def test_restarted_ledger_enforces_prior_claims(self, allowlist, tmp_path):
        path = tmp_path / "ledger.json"
        first, _, _ = make_ledger(allowlist, store=JsonFileLedgerStore(path))
        claim(first, allowlist, ALICE, [1, 1, 1], [1, 1, 1])

        second, _, sink = make_ledger(allowlist, store=JsonFileLedgerStore(path))
        assert second.get_claimed(ALICE) == (1, 1, 1)
        with pytest.raises(CumulativeCapExceededError):
            claim(second, allowlist, ALICE, [1, 0, 0], [1, 1, 1])
        assert sink.calls == []

    def test_override_is_persisted(self, allowlist, tmp_path):
        path = tmp_path / "ledger.json"
        ledger, _, _ = make_ledger(allowlist, store=JsonFileLedgerStore(path))
        ledger.override_claimed(ALICE, 2)
        data = json.loads(path.read_text())
        assert data["schema_version"] == "v1"
        assert data["claimed"] == {to_checksum_address(ALICE): [2]}

    def test_missing_file_starts_empty(self, tmp_path):
        store = JsonFileLedgerStore(tmp_path / "fresh.json")
        assert store.get_commitment() is None
        assert store.all_claimed() == {}
        assert not (tmp_path / "fresh.json").exists()

    def test_invalid_json_refused(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text("{not json")
        with pytest.raises(LedgerPersistenceError):
            JsonFileLedgerStore(path)

    def test_non_object_refused(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text("[]")
        with pytest.raises(LedgerPersistenceError, match="expected an object"):
            JsonFileLedgerStore(path)

    def test_bad_receipt_refused(self, tmp_path):
        (tmp_path / "ledger.receipts.jsonl").write_text(json.dumps({"receipt_id": ""}) + "\n")
        with pytest.raises(LedgerPersistenceError, match="line 1") as exc_info:
            JsonFileLedgerStore(tmp_path / "ledger.json")
        assert exc_info.value.details["path"].endswith("ledger.receipts.jsonl")

    @pytest.mark.parametrize(
        "vector",
        [["x"], [1, -1], "1,0", 3, [1.5], [True]],
    )
    def test_bad_claimed_vector_refused(self, tmp_path, vector):
        path = tmp_path / "ledger.json"
        path.write_text(json.dumps({"schema_version": "v1", "claimed": {ALICE: vector}}))
        with pytest.raises(LedgerPersistenceError, match="corrupt") as exc_info:
            JsonFileLedgerStore(path)
        assert exc_info.value.details == {"path": str(path)}

    def test_claimed_must_be_an_object(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text(json.dumps({"schema_version": "v1", "claimed": [[1]]}))
        with pytest.raises(LedgerPersistenceError):
            JsonFileLedgerStore(path)

    def test_unknown_schema_version_refused(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text(json.dumps({"schema_version": "v9"}))
        with pytest.raises(UnsupportedSchemaVersionError):
            JsonFileLedgerStore(path)

    def test_receipts_are_appended_not_rewritten(self, allowlist, tmp_path):
        path = tmp_path / "ledger.json"
        store = JsonFileLedgerStore(path)
        ledger, _, _ = make_ledger(allowlist, store=store)
        claim(ledger, allowlist, ALICE, [1, 0, 0], [1, 1, 1])
        first_line = store.receipts_path.read_text()

        claim(ledger, allowlist, ALICE, [0, 1, 0], [1, 1, 1])
        journal = store.receipts_path.read_text()
        assert journal.startswith(first_line)
        assert len(journal.splitlines()) == 2
        assert "receipts" not in json.loads(path.read_text())

    def test_torn_last_receipt_is_dropped(self, allowlist, tmp_path):
        path = tmp_path / "ledger.json"
        ledger, _, _ = make_ledger(allowlist, store=JsonFileLedgerStore(path))
        claim(ledger, allowlist, ALICE, [1, 0, 0], [1, 1, 1])
        journal = path.with_suffix(".receipts.jsonl")
        with open(journal, "a", encoding="utf-8") as f:
            f.write('{"receipt_id": "rc_cl')

        reopened = JsonFileLedgerStore(path)
        assert len(reopened.receipts()) == 1
        assert journal.read_text().endswith("}\n")

        second, _, _ = make_ledger(allowlist, store=reopened)
        claim(second, allowlist, ALICE, [0, 1, 0], [1, 1, 1])
        assert len(JsonFileLedgerStore(path).receipts()) == 2

    def test_receipt_journaled_after_failed_write(self, allowlist, tmp_path, monkeypatch):
        path = tmp_path / "ledger.json"
        store = JsonFileLedgerStore(path)
        ledger, _, _ = make_ledger(allowlist, store=store)

        def broken_write(target, payload):
            raise OSError("read-only file system")

        with monkeypatch.context() as m:
            m.setattr("core.ledger.store.write_json_atomic", broken_write)
            with pytest.raises(LedgerPersistenceError):
                claim(ledger, allowlist, ALICE, [1, 0, 0], [1, 1, 1])

        claim(ledger, allowlist, BOB, [1, 0, 0], [2, 0, 1])
        reopened = JsonFileLedgerStore(path)
        assert [r.recipient for r in reopened.receipts()] == [
            to_checksum_address(ALICE),
            to_checksum_address(BOB),
        ]
        assert reopened.get_claimed(to_checksum_address(ALICE)) == (1, 0, 0)

    def test_failed_flush_keeps_memory(self, allowlist, tmp_path, monkeypatch):
        path = tmp_path / "ledger.json"
        store = JsonFileLedgerStore(path)
        ledger, _, sink = make_ledger(allowlist, store=store)

        def broken_write(target, payload):
            raise OSError("read-only file system")

        monkeypatch.setattr("core.ledger.store.write_json_atomic", broken_write)

        with pytest.raises(LedgerPersistenceError) as exc_info:
            claim(ledger, allowlist, ALICE, [1, 0, 0], [1, 1, 1])
        assert exc_info.value.details["path"] == str(path)
        assert ledger.get_claimed(ALICE) == (1, 0, 0)
        assert len(sink.calls) == 1
