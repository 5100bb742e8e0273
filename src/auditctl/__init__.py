"""Tamper-evident, hash-chained audit log for lending decisions."""

from auditctl.audit.hashing import compute_entry_hash
from auditctl.audit.logger import AuditLogger
from auditctl.audit.models import (
    AuditEntry,
    AuditEntryOptions,
    AuditQuery,
    ComplianceInfo,
    Decision,
    IntegrityFailure,
    IntegrityResult,
)
from auditctl.audit.sanitize import sanitize_inputs
from auditctl.config import AuditConfig, load_config
from auditctl.storage import AuditStorage, FileStorage, MemoryStorage

__version__ = "0.1.0"

__all__ = [
    "AuditConfig",
    "AuditEntry",
    "AuditEntryOptions",
    "AuditLogger",
    "AuditQuery",
    "AuditStorage",
    "ComplianceInfo",
    "Decision",
    "FileStorage",
    "IntegrityFailure",
    "IntegrityResult",
    "MemoryStorage",
    "compute_entry_hash",
    "load_config",
    "sanitize_inputs",
]
