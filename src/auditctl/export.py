"""Read-only export formats for audit entries."""

import csv
import io
import json
from collections import Counter
from datetime import UTC, datetime

from auditctl.audit.models import AuditEntry, format_timestamp

EXPORT_FORMATS = ("json", "jsonl", "csv", "occ", "cfpb")

CSV_FIELDS = [
    "audit_id",
    "timestamp",
    "tool",
    "command",
    "tool_version",
    "operator",
    "loan_id",
    "session_id",
    "rationale",
    "warnings",
    "regulations",
    "risk_flags",
    "human_review_required",
    "duration_ms",
    "entry_hash",
]


def to_json(entries: list[AuditEntry]) -> str:
    return json.dumps([e.to_record() for e in entries], indent=2, ensure_ascii=False)


def to_jsonl(entries: list[AuditEntry]) -> str:
    return "\n".join(json.dumps(e.to_record(), ensure_ascii=False) for e in entries)


def to_csv(entries: list[AuditEntry]) -> str:
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=CSV_FIELDS)
    writer.writeheader()
    for e in entries:
        writer.writerow(
            {
                "audit_id": e.audit_id,
                "timestamp": e.timestamp,
                "tool": e.tool,
                "command": e.command,
                "tool_version": e.tool_version,
                "operator": e.operator,
                "loan_id": e.loan_id or "",
                "session_id": e.session_id or "",
                "rationale": e.rationale,
                "warnings": "; ".join(e.warnings),
                "regulations": "; ".join(e.compliance.regulations),
                "risk_flags": "; ".join(e.compliance.risk_flags),
                "human_review_required": "true" if e.compliance.human_review_required else "false",
                "duration_ms": "" if e.duration_ms is None else str(e.duration_ms),
                "entry_hash": e.entry_hash or "",
            }
        )
    return output.getvalue()


def to_occ(entries: list[AuditEntry], exported_at: datetime | None = None) -> str:
    """Examination-ready summary plus the entries, keyed by integrity hash."""
    by_tool = Counter(e.tool for e in entries)
    by_regulation = Counter(reg for e in entries for reg in e.compliance.regulations)

    output = {
        "exportDate": format_timestamp(exported_at or datetime.now(UTC)),
        "exportFormat": "OCC Examination Ready",
        "totalEntries": len(entries),
        "dateRange": {
            "start": entries[0].timestamp if entries else None,
            "end": entries[-1].timestamp if entries else None,
        },
        "summary": {
            "byTool": dict(by_tool),
            "byRegulation": dict(by_regulation),
            "riskFlagged": sum(1 for e in entries if e.compliance.risk_flags),
            "humanReviewRequired": sum(1 for e in entries if e.compliance.human_review_required),
        },
        "entries": [
            {
                "auditId": e.audit_id,
                "timestamp": e.timestamp,
                "tool": e.tool,
                "command": e.command,
                "toolVersion": e.tool_version,
                "operator": e.operator,
                "loanId": e.loan_id,
                "rationale": e.rationale,
                "warnings": e.warnings,
                "compliance": e.compliance.to_record(),
                "integrityHash": e.entry_hash,
            }
            for e in entries
        ],
    }
    return json.dumps(output, indent=2, ensure_ascii=False)


def to_cfpb(entries: list[AuditEntry], exported_at: datetime | None = None) -> str:
    """Fair lending view: only entries whose outputs record a decision."""
    decisions = [e for e in entries if "decision" in e.outputs]
    output = {
        "exportDate": format_timestamp(exported_at or datetime.now(UTC)),
        "exportFormat": "CFPB Fair Lending Analysis",
        "totalDecisions": len(decisions),
        "entries": [
            {
                "auditId": e.audit_id,
                "timestamp": e.timestamp,
                "loanId": e.loan_id,
                "decision": e.outputs["decision"],
                "adverseActionReasons": e.outputs.get("adverseActionReasons"),
                "rationale": e.rationale,
                "ecoaCompliant": "ECOA" in e.compliance.regulations,
                "riskFlags": e.compliance.risk_flags,
            }
            for e in decisions
        ],
    }
    return json.dumps(output, indent=2, ensure_ascii=False)


def export_entries(entries: list[AuditEntry], fmt: str) -> str:
    if fmt == "json":
        return to_json(entries)
    if fmt == "jsonl":
        return to_jsonl(entries)
    if fmt == "csv":
        return to_csv(entries)
    if fmt == "occ":
        return to_occ(entries)
    if fmt == "cfpb":
        return to_cfpb(entries)
    raise ValueError(f"Unknown export format: {fmt}")
