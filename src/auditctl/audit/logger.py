"""Hash-chained audit logger on top of a pluggable storage backend."""

import logging
import uuid
from datetime import UTC, datetime
from typing import Any

from auditctl.audit.hashing import compute_entry_hash
from auditctl.audit.models import (
    AuditEntry,
    AuditEntryOptions,
    AuditQuery,
    ComplianceInfo,
    ComplianceOverrides,
    Decision,
    IntegrityResult,
    format_timestamp,
)
from auditctl.audit.sanitize import sanitize_inputs
from auditctl.config import AuditConfig
from auditctl.storage.base import AuditStorage

log = logging.getLogger(__name__)

DECISION_REGULATIONS = ("ECOA", "Reg B")
UNSPECIFIED_REASON = "Unspecified reason"


def merge_compliance(overrides: ComplianceOverrides | None) -> ComplianceInfo:
    """Defaults, then each caller-supplied field on top."""
    if overrides is None:
        return ComplianceInfo()
    return ComplianceInfo(
        regulations=overrides.regulations if overrides.regulations is not None else [],
        risk_flags=overrides.risk_flags if overrides.risk_flags is not None else [],
        human_review_required=bool(overrides.human_review_required),
        checks_performed=overrides.checks_performed,
        exemptions=overrides.exemptions,
    )


def build_entry(
    options: AuditEntryOptions,
    previous_hash: str | None,
    audit_id: str,
    timestamp: str,
    *,
    default_operator: str = "system",
    session_id: str | None = None,
) -> AuditEntry:
    """Assemble an entry without its entry_hash.

    Payload contents are taken as given; only missing fields are defaulted.
    """
    return AuditEntry(
        audit_id=audit_id,
        timestamp=timestamp,
        tool=options.tool,
        command=options.command,
        tool_version=options.tool_version,
        inputs=options.inputs,
        outputs=options.outputs,
        rationale=options.rationale,
        warnings=list(options.warnings) if options.warnings is not None else [],
        compliance=merge_compliance(options.compliance),
        operator=options.operator or default_operator,
        session_id=options.session_id or session_id,
        parent_audit_id=options.parent_audit_id,
        loan_id=options.loan_id,
        duration_ms=options.duration_ms,
        previous_hash=previous_hash,
    )


class AuditLogger:
    """Creates audit entries and appends them to storage as a hash chain.

    Each entry's previous_hash is the entryHash of the last stored line.
    The read-last, hash, append sequence runs under the storage's writer
    lock so concurrent writers cannot fork the chain.
    """

    def __init__(
        self,
        storage: AuditStorage,
        config: AuditConfig | None = None,
        session_id: str | None = None,
    ) -> None:
        self.storage = storage
        self.config = config or AuditConfig()
        self._session_id = session_id

    @property
    def session_id(self) -> str | None:
        return self._session_id

    def start_session(self, session_id: str | None = None) -> "AuditLogger":
        """Return a logger sharing this storage and config, bound to a session."""
        return AuditLogger(self.storage, self.config, session_id=session_id or str(uuid.uuid4()))

    def log(self, options: AuditEntryOptions | None = None, **fields: Any) -> AuditEntry:
        """Create and append an audit entry to the log.

        Accepts either an AuditEntryOptions or its fields as keyword
        arguments. Invalid fields raise pydantic.ValidationError before
        anything is written.
        """
        if options is None:
            options = AuditEntryOptions(**fields)
        options = options.model_copy(
            update={"inputs": sanitize_inputs(options.inputs, self.config.sensitive_keys)}
        )

        with self.storage.writer_lock():
            entry = build_entry(
                options,
                previous_hash=self.storage.last_entry_hash(),
                audit_id=str(uuid.uuid4()),
                timestamp=format_timestamp(datetime.now(UTC)),
                default_operator=self.config.default_operator,
                session_id=self._session_id,
            )
            entry = entry.model_copy(update={"entry_hash": compute_entry_hash(entry)})
            self.storage.append(entry)

        log.debug("Logged %s %s as %s", entry.tool, entry.command, entry.audit_id)
        return entry

    def log_decision(
        self,
        options: AuditEntryOptions | None = None,
        *,
        decision: Decision | str,
        decline_reasons: list[str] | None = None,
        **fields: Any,
    ) -> AuditEntry:
        """Log a credit decision with ECOA / Reg B compliance attached.

        Declines always require human review and always carry at least one
        adverse action reason.
        """
        decision = Decision(decision)
        if options is None:
            options = AuditEntryOptions(**fields)

        outputs = dict(options.outputs)
        outputs["decision"] = decision.value
        if decision is Decision.DECLINED:
            outputs["adverseActionReasons"] = (
                list(decline_reasons) if decline_reasons else [UNSPECIFIED_REASON]
            )

        overrides = options.compliance or ComplianceOverrides()
        regulations = list(overrides.regulations or [])
        for code in DECISION_REGULATIONS:
            if code not in regulations:
                regulations.append(code)
        compliance = overrides.model_copy(
            update={
                "regulations": regulations,
                "human_review_required": (
                    decision is Decision.DECLINED or bool(overrides.human_review_required)
                ),
            }
        )

        return self.log(options.model_copy(update={"outputs": outputs, "compliance": compliance}))

    def query(self, query: AuditQuery | None = None) -> list[AuditEntry]:
        return self.storage.query(query)

    def get_by_id(self, audit_id: str) -> AuditEntry | None:
        return self.storage.get_by_id(audit_id)

    def verify_integrity(self, from_date: datetime | str | None = None) -> IntegrityResult:
        return self.storage.verify_integrity(from_date)

    def count(self, query: AuditQuery | None = None) -> int:
        return self.storage.count(query)
