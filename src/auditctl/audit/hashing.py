"""Canonical serialization and SHA-256 content hashing for audit entries."""

import hashlib
import json
from collections.abc import Mapping
from typing import Any

from auditctl.audit.models import AuditEntry

# Hash input key order. Changing it invalidates every existing log.
HASHED_FIELDS: tuple[tuple[str, str], ...] = (
    ("audit_id", "auditId"),
    ("timestamp", "timestamp"),
    ("tool", "tool"),
    ("command", "command"),
    ("tool_version", "toolVersion"),
    ("inputs", "inputs"),
    ("outputs", "outputs"),
    ("rationale", "rationale"),
    ("warnings", "warnings"),
    ("compliance", "compliance"),
    ("operator", "operator"),
    ("session_id", "sessionId"),
    ("parent_audit_id", "parentAuditId"),
    ("loan_id", "loanId"),
    ("duration_ms", "durationMs"),
    ("previous_hash", "previousHash"),
)

COMPLIANCE_KEYS = (
    "regulations",
    "riskFlags",
    "humanReviewRequired",
    "checksPerformed",
    "exemptions",
)


def _canonical_compliance(value: Mapping[str, Any]) -> dict[str, Any]:
    ordered = {key: value[key] for key in COMPLIANCE_KEYS if value.get(key) is not None}
    # Unknown keys stay hashed so adding one to a stored line is detected
    ordered.update((k, v) for k, v in value.items() if k not in ordered and v is not None)
    return ordered


def canonical_content(entry: AuditEntry | Mapping[str, Any]) -> str:
    """Serialize the hashed fields of an entry.

    Accepts a model or a stored camelCase record exactly as decoded from the
    log, so values are hashed as stored rather than after type coercion.
    Absent optional fields are left out entirely, so an omitted key and an
    explicit None produce the same bytes. entryHash is never included.
    """
    record = entry.to_record() if isinstance(entry, AuditEntry) else entry
    content: dict[str, Any] = {}
    for _, key in HASHED_FIELDS:
        value = record.get(key)
        if value is None:
            continue
        if key == "compliance" and isinstance(value, Mapping):
            value = _canonical_compliance(value)
        content[key] = value
    return json.dumps(content, separators=(",", ":"), ensure_ascii=False)


def compute_entry_hash(entry: AuditEntry | Mapping[str, Any]) -> str:
    """Return the 64-character lowercase hex SHA-256 of the entry's canonical form."""
    data = canonical_content(entry).encode("utf-8", "surrogatepass")
    return hashlib.sha256(data).hexdigest()
