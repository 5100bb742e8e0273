"""Tests for audit log hash chain verification."""

import json
from datetime import UTC, datetime
from pathlib import Path

from auditctl.audit.hashing import compute_entry_hash
from auditctl.audit.logger import AuditLogger, build_entry
from auditctl.audit.models import AuditEntry, AuditEntryOptions
from auditctl.audit.verifier import (
    ENTRY_HASH_MISMATCH,
    PREVIOUS_HASH_MISMATCH,
    check_entry,
    verify_chain,
)
from auditctl.storage.file import FileStorage
from auditctl.storage.memory import MemoryStorage


def make_chain(timestamps: list[str]) -> list[AuditEntry]:
    """A valid chain with one entry per timestamp."""
    entries: list[AuditEntry] = []
    prev: str | None = None
    for i, ts in enumerate(timestamps):
        entry = build_entry(
            AuditEntryOptions(tool="finctl", command=f"step_{i}", tool_version="1.0.0"),
            previous_hash=prev,
            audit_id=f"id-{i}",
            timestamp=ts,
        )
        entry = entry.model_copy(update={"entry_hash": compute_entry_hash(entry)})
        entries.append(entry)
        prev = entry.entry_hash
    return entries


def rewrite_line(log_path: Path, index: int, **changes) -> None:
    lines = log_path.read_text().splitlines()
    record = json.loads(lines[index])
    record.update(changes)
    lines[index] = json.dumps(record)
    log_path.write_text("\n".join(lines) + "\n")


def logged(tmp_path: Path, n: int) -> tuple[Path, list[AuditEntry]]:
    log_path = tmp_path / "audit.jsonl"
    logger = AuditLogger(FileStorage(log_path))
    entries = [
        logger.log(tool="finctl", command=f"action_{i}", tool_version="1.0.0", inputs={"i": i})
        for i in range(n)
    ]
    return log_path, entries


def test_verify_valid_chain(tmp_path: Path):
    log_path, _ = logged(tmp_path, 10)

    result = FileStorage(log_path).verify_integrity()
    assert result.valid
    assert result.entries_checked == 10
    assert result.valid_entries == 10
    assert result.invalid_entries == 0
    assert result.failures == []


def test_verify_empty_log(tmp_path: Path):
    result = FileStorage(tmp_path / "audit.jsonl", create_if_missing=False).verify_integrity()
    assert result.valid
    assert result.entries_checked == 0


def test_tampered_content_reports_only_that_entry(tmp_path: Path):
    log_path, entries = logged(tmp_path, 3)
    rewrite_line(log_path, 1, tool="TAMPERED")

    result = FileStorage(log_path).verify_integrity()
    assert not result.valid
    assert result.entries_checked == 3
    assert result.valid_entries == 2
    assert result.invalid_entries == 1

    (failure,) = result.failures
    assert failure.audit_id == entries[1].audit_id
    assert failure.reason == ENTRY_HASH_MISMATCH
    assert failure.actual_hash == entries[1].entry_hash
    assert failure.expected_hash != entries[1].entry_hash


def test_tampered_stored_hash_breaks_next_link(tmp_path: Path):
    log_path, entries = logged(tmp_path, 3)
    forged = "0" * 64
    rewrite_line(log_path, 1, entryHash=forged)

    result = FileStorage(log_path).verify_integrity()
    assert not result.valid
    assert result.valid_entries == 1
    assert result.invalid_entries == 2

    first, second = result.failures
    assert first.audit_id == entries[1].audit_id
    assert first.reason == ENTRY_HASH_MISMATCH
    assert first.expected_hash == entries[1].entry_hash
    assert first.actual_hash == forged

    assert second.audit_id == entries[2].audit_id
    assert second.reason == PREVIOUS_HASH_MISMATCH
    assert second.expected_hash == forged
    assert second.actual_hash == entries[1].entry_hash


def test_broken_link_skips_content_check(tmp_path: Path):
    log_path, entries = logged(tmp_path, 2)

    # Re-hash entry 2 after pointing it elsewhere so only the link is wrong
    record = json.loads(log_path.read_text().splitlines()[1])
    record["previousHash"] = "f" * 64
    forged = AuditEntry.model_validate(record)
    record["entryHash"] = compute_entry_hash(forged)
    lines = log_path.read_text().splitlines()
    lines[1] = json.dumps(record)
    log_path.write_text("\n".join(lines) + "\n")

    result = FileStorage(log_path).verify_integrity()
    (failure,) = result.failures
    assert failure.reason == PREVIOUS_HASH_MISMATCH
    assert failure.expected_hash == entries[0].entry_hash
    assert failure.actual_hash == "f" * 64


def test_verification_is_idempotent(tmp_path: Path):
    log_path, _ = logged(tmp_path, 4)
    rewrite_line(log_path, 2, rationale="edited")

    storage = FileStorage(log_path)
    assert storage.verify_integrity() == storage.verify_integrity()


def test_from_date_limits_reported_entries():
    entries = make_chain(
        [
            "2025-01-01T09:00:00.000Z",
            "2025-02-01T09:00:00.000Z",
            "2025-03-01T09:00:00.000Z",
        ]
    )
    result = verify_chain(entries, datetime(2025, 2, 1, tzinfo=UTC))
    assert result.valid
    assert result.entries_checked == 2
    assert result.valid_entries == 2


def test_from_date_still_links_to_earlier_entry():
    entries = make_chain(
        [
            "2025-01-01T09:00:00.000Z",
            "2025-02-01T09:00:00.000Z",
        ]
    )
    # Corrupt the stored hash of the excluded first entry
    entries[0] = entries[0].model_copy(update={"entry_hash": "0" * 64})

    result = verify_chain(entries, "2025-01-15T00:00:00Z")
    assert result.entries_checked == 1
    (failure,) = result.failures
    assert failure.audit_id == "id-1"
    assert failure.reason == PREVIOUS_HASH_MISMATCH


def test_naive_from_date_treated_as_utc():
    entries = make_chain(["2025-01-01T09:00:00.000Z", "2025-03-01T09:00:00.000Z"])
    result = verify_chain(entries, datetime(2025, 2, 1))
    assert result.entries_checked == 1


def test_counts_always_add_up():
    entries = make_chain([f"2025-01-0{i}T00:00:00.000Z" for i in range(1, 7)])
    entries[1] = entries[1].model_copy(update={"rationale": "x"})
    entries[4] = entries[4].model_copy(update={"entry_hash": "a" * 64})

    result = verify_chain(entries)
    assert result.valid_entries + result.invalid_entries == result.entries_checked
    assert [f.audit_id for f in result.failures] == ["id-1", "id-4", "id-5"]


def test_verify_via_memory_storage():
    storage = MemoryStorage(make_chain(["2025-01-01T00:00:00.000Z", "2025-01-02T00:00:00.000Z"]))
    assert storage.verify_integrity().valid


def test_check_entry():
    (entry,) = make_chain(["2025-01-01T00:00:00.000Z"])
    ok, computed = check_entry(entry)
    assert ok
    assert computed == entry.entry_hash

    ok, computed = check_entry(entry.model_copy(update={"loan_id": "LN-9"}))
    assert not ok
    assert computed != entry.entry_hash


def test_retyped_last_entry_is_reported(tmp_path: Path):
    log_path, entries = logged(tmp_path, 3)
    rewrite_line(log_path, 2, tool=12345)

    storage = FileStorage(log_path)
    assert storage.query() == entries[:2]

    result = storage.verify_integrity()
    assert not result.valid
    assert result.entries_checked == 3
    (failure,) = result.failures
    assert failure.audit_id == entries[2].audit_id
    assert failure.reason == ENTRY_HASH_MISMATCH
    assert failure.actual_hash == entries[2].entry_hash


def test_retyped_middle_entry_is_blamed_on_itself(tmp_path: Path):
    log_path, entries = logged(tmp_path, 3)
    rewrite_line(log_path, 1, warnings=[1])

    result = FileStorage(log_path).verify_integrity()
    assert result.valid_entries == 2
    (failure,) = result.failures
    assert failure.audit_id == entries[1].audit_id
    assert failure.reason == ENTRY_HASH_MISMATCH
    assert failure.actual_hash == entries[1].entry_hash


def test_coercible_value_changes_are_detected(tmp_path: Path):
    log_path = tmp_path / "audit.jsonl"
    logger = AuditLogger(FileStorage(log_path))
    first = logger.log(tool="finctl", command="dti", tool_version="1.0.0", duration_ms=5)
    second = logger.log(tool="finctl", command="ltv", tool_version="1.0.0")

    rewrite_line(log_path, 0, durationMs="5")
    compliance = second.compliance.to_record()
    compliance["humanReviewRequired"] = 0
    rewrite_line(log_path, 1, compliance=compliance)

    storage = FileStorage(log_path)
    # Both lines still load; the stored bytes no longer match their hashes
    assert storage.count() == 2
    result = storage.verify_integrity()
    assert [f.audit_id for f in result.failures] == [first.audit_id, second.audit_id]
    assert {f.reason for f in result.failures} == {ENTRY_HASH_MISMATCH}


def test_log_links_to_last_stored_line_even_if_retyped(tmp_path: Path):
    log_path, entries = logged(tmp_path, 2)
    rewrite_line(log_path, 1, tool=12345)

    storage = FileStorage(log_path)
    new = AuditLogger(storage).log(tool="finctl", command="next", tool_version="1.0.0")
    assert new.previous_hash == entries[1].entry_hash

    (failure,) = storage.verify_integrity().failures
    assert failure.audit_id == entries[1].audit_id


def test_non_object_json_line_holds_its_place(tmp_path: Path):
    log_path, entries = logged(tmp_path, 2)
    lines = log_path.read_text().splitlines()
    lines[0] = "[1, 2]"
    log_path.write_text("\n".join(lines) + "\n")

    result = FileStorage(log_path).verify_integrity()
    assert result.entries_checked == 2
    first, second = result.failures
    assert first.reason == ENTRY_HASH_MISMATCH
    assert first.actual_hash is None
    assert second.audit_id == entries[1].audit_id
    assert second.reason == PREVIOUS_HASH_MISMATCH


def test_verify_raw_records():
    entries = make_chain(["2025-01-01T00:00:00.000Z", "2025-01-02T00:00:00.000Z"])
    records = [entry.to_record() for entry in entries]
    assert verify_chain(records).valid

    records[1]["loanId"] = "LN-9"
    (failure,) = verify_chain(records).failures
    assert failure.audit_id == "id-1"
