"""Pydantic models for audit trail entries."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """Snake_case attributes, camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Decision(str, Enum):
    APPROVED = "approved"
    DECLINED = "declined"
    REFERRED = "referred"
    COUNTERED = "countered"


class ComplianceInfo(_CamelModel):
    model_config = ConfigDict(frozen=True)

    regulations: list[str] = Field(default_factory=list)
    risk_flags: list[str] = Field(default_factory=list)
    human_review_required: bool = False
    checks_performed: list[str] | None = None
    exemptions: list[str] | None = None

    def to_record(self) -> dict[str, Any]:
        """Render in fixed key order, omitting absent optional lists."""
        record: dict[str, Any] = {
            "regulations": list(self.regulations),
            "riskFlags": list(self.risk_flags),
            "humanReviewRequired": self.human_review_required,
        }
        if self.checks_performed is not None:
            record["checksPerformed"] = list(self.checks_performed)
        if self.exemptions is not None:
            record["exemptions"] = list(self.exemptions)
        return record


class ComplianceOverrides(_CamelModel):
    """Caller-supplied compliance fields; anything left as None keeps the default."""

    regulations: list[str] | None = None
    risk_flags: list[str] | None = None
    human_review_required: bool | None = None
    checks_performed: list[str] | None = None
    exemptions: list[str] | None = None


class AuditEntry(_CamelModel):
    model_config = ConfigDict(frozen=True)

    audit_id: str
    timestamp: str
    tool: str
    command: str
    tool_version: str
    inputs: dict[str, Any]
    outputs: dict[str, Any]
    rationale: str
    warnings: list[str]
    compliance: ComplianceInfo
    operator: str
    session_id: str | None = None
    parent_audit_id: str | None = None
    loan_id: str | None = None
    duration_ms: int | None = None
    previous_hash: str | None = None
    entry_hash: str | None = None

    def to_record(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys; absent optional fields are omitted."""
        record: dict[str, Any] = {}
        for name, field in type(self).model_fields.items():
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, ComplianceInfo):
                value = value.to_record()
            record[field.alias or name] = value
        return record

    def parsed_timestamp(self) -> datetime | None:
        """The timestamp as an aware datetime, or None if it does not parse."""
        try:
            return parse_timestamp(self.timestamp)
        except ValueError:
            return None


class AuditEntryOptions(_CamelModel):
    """Caller-supplied fields for a new entry."""

    tool: str
    command: str
    tool_version: str
    inputs: dict[str, Any] = Field(default_factory=dict)
    outputs: dict[str, Any] = Field(default_factory=dict)
    rationale: str = ""
    warnings: list[str] | None = None
    compliance: ComplianceOverrides | None = None
    operator: str | None = None
    session_id: str | None = None
    parent_audit_id: str | None = None
    loan_id: str | None = None
    duration_ms: int | None = None


class AuditQuery(_CamelModel):
    loan_id: str | None = None
    tool: str | None = None
    command: str | None = None
    operator: str | None = None
    session_id: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    has_risk_flags: bool | None = None
    human_review_required: bool | None = None
    limit: int | None = Field(default=None, ge=0)
    offset: int = Field(default=0, ge=0)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_timestamp(value)
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class IntegrityFailure(_CamelModel):
    audit_id: str
    timestamp: str
    reason: str
    expected_hash: str | None = None
    actual_hash: str | None = None


class IntegrityResult(_CamelModel):
    valid: bool
    entries_checked: int
    valid_entries: int
    invalid_entries: int
    failures: list[IntegrityFailure] = Field(default_factory=list)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 string; naive values are taken as UTC."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with milliseconds, e.g. 2025-01-31T14:05:09.123Z."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
