"""Audit log hash chain verification."""

import json
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from auditctl.audit.hashing import compute_entry_hash
from auditctl.audit.models import AuditEntry, IntegrityFailure, IntegrityResult, parse_timestamp

PREVIOUS_HASH_MISMATCH = "Previous hash mismatch"
ENTRY_HASH_MISMATCH = "Entry hash mismatch - possible tampering"


def check_entry(entry: AuditEntry) -> tuple[bool, str]:
    """Recompute a single entry's hash.

    Returns (matches_stored_hash, computed_hash).
    """
    computed = compute_entry_hash(entry)
    return computed == entry.entry_hash, computed


def _as_record(item: AuditEntry | Mapping[str, Any] | Any) -> Mapping[str, Any]:
    if isinstance(item, AuditEntry):
        return item.to_record()
    if isinstance(item, Mapping):
        return item
    # A JSON line that is not an object still holds its place in the chain
    return {}


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _record_time(record: Mapping[str, Any]) -> datetime | None:
    value = record.get("timestamp")
    if not isinstance(value, str):
        return None
    try:
        return parse_timestamp(value)
    except ValueError:
        return None


def verify_chain(
    entries: Sequence[AuditEntry | Mapping[str, Any]],
    from_date: datetime | str | None = None,
) -> IntegrityResult:
    """Replay the hash chain over entries in storage order.

    entries must be the full log, either as models or as the raw records
    decoded from each stored line. Raw records are checked as stored, so a
    line whose field types were altered fails its hash check even though it
    would not load as an AuditEntry.

    When from_date is given, only entries at or after it are reported on,
    but their predecessors are still needed to check previousHash linkage.
    For each reported entry:

    1. Unless it is the first entry in the log, its previousHash must equal
       the preceding entry's entryHash. On mismatch the entry is recorded
       as a failure and its own hash is not checked.
    2. Its entryHash must equal the hash recomputed from its content.

    An entry whose timestamp does not parse is always reported on.
    """
    if isinstance(from_date, str):
        from_date = parse_timestamp(from_date)
    elif from_date is not None and from_date.tzinfo is None:
        from_date = from_date.replace(tzinfo=UTC)

    records = [_as_record(item) for item in entries]
    failures: list[IntegrityFailure] = []
    checked = 0
    valid = 0

    for i, record in enumerate(records):
        if from_date is not None:
            ts = _record_time(record)
            if ts is not None and ts < from_date:
                continue
        checked += 1

        audit_id = _text(record.get("auditId")) or ""
        timestamp = _text(record.get("timestamp")) or ""
        stored_hash = record.get("entryHash")

        if i > 0:
            expected_prev = records[i - 1].get("entryHash")
            previous_hash = record.get("previousHash")
            if previous_hash != expected_prev:
                failures.append(
                    IntegrityFailure(
                        audit_id=audit_id,
                        timestamp=timestamp,
                        reason=PREVIOUS_HASH_MISMATCH,
                        expected_hash=_text(expected_prev),
                        actual_hash=_text(previous_hash),
                    )
                )
                continue

        computed = compute_entry_hash(record)
        if computed != stored_hash:
            failures.append(
                IntegrityFailure(
                    audit_id=audit_id,
                    timestamp=timestamp,
                    reason=ENTRY_HASH_MISMATCH,
                    expected_hash=computed,
                    actual_hash=_text(stored_hash),
                )
            )
            continue

        valid += 1

    return IntegrityResult(
        valid=not failures,
        entries_checked=checked,
        valid_entries=valid,
        invalid_entries=len(failures),
        failures=failures,
    )
