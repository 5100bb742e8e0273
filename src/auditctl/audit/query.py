"""In-memory filtering and pagination over audit entries."""

from collections.abc import Iterable

from auditctl.audit.models import AuditEntry, AuditQuery


def matches(entry: AuditEntry, query: AuditQuery) -> bool:
    """True if the entry satisfies every filter set on the query."""
    if query.loan_id is not None and entry.loan_id != query.loan_id:
        return False
    if query.tool is not None and entry.tool != query.tool:
        return False
    if query.command is not None and entry.command != query.command:
        return False
    if query.operator is not None and entry.operator != query.operator:
        return False
    if query.session_id is not None and entry.session_id != query.session_id:
        return False

    if query.start_date is not None or query.end_date is not None:
        ts = entry.parsed_timestamp()
        if ts is None:
            return False
        if query.start_date is not None and ts < query.start_date:
            return False
        if query.end_date is not None and ts > query.end_date:
            return False

    if query.has_risk_flags and not entry.compliance.risk_flags:
        return False
    if query.human_review_required is not None:
        if entry.compliance.human_review_required != query.human_review_required:
            return False

    return True


def paginate(
    entries: list[AuditEntry], offset: int = 0, limit: int | None = None
) -> list[AuditEntry]:
    """Slice from offset; a limit of None or 0 means no limit."""
    if not limit:
        return entries[offset:]
    return entries[offset : offset + limit]


def filter_entries(
    entries: Iterable[AuditEntry], query: AuditQuery | None = None
) -> list[AuditEntry]:
    """Matching entries in their original order, with offset/limit applied."""
    if query is None:
        return list(entries)
    matched = [e for e in entries if matches(e, query)]
    return paginate(matched, query.offset, query.limit)


def count_matching(entries: Iterable[AuditEntry], query: AuditQuery | None = None) -> int:
    """Number of matching entries, ignoring pagination."""
    if query is None:
        return sum(1 for _ in entries)
    return sum(1 for e in entries if matches(e, query))
