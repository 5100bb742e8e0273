"""Abstract storage interface for the audit chain."""

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from auditctl.audit.models import AuditEntry, AuditQuery, IntegrityResult
from auditctl.audit.query import count_matching, filter_entries
from auditctl.audit.verifier import verify_chain


class AuditStorage(ABC):
    """Append-only store of audit entries.

    Append order is the chain order: implementations must return entries
    in exactly the order they were appended, never re-sorted by timestamp.
    """

    def __init__(self) -> None:
        self._write_lock = threading.Lock()

    @abstractmethod
    def append(self, entry: AuditEntry) -> None: ...

    @abstractmethod
    def read_all(self) -> list[AuditEntry]: ...

    def read_records(self) -> list[Any]:
        """Every stored entry as its raw camelCase record, in chain order.

        Backends that persist serialized lines override this to return each
        decoded line, including ones that no longer load as an AuditEntry.
        """
        return [entry.to_record() for entry in self.read_all()]

    @contextmanager
    def writer_lock(self) -> Iterator[None]:
        """Hold exclusive write access for a read-last-then-append sequence."""
        with self._write_lock:
            yield

    def query(self, query: AuditQuery | None = None) -> list[AuditEntry]:
        return filter_entries(self.read_all(), query)

    def count(self, query: AuditQuery | None = None) -> int:
        return count_matching(self.read_all(), query)

    def get_by_id(self, audit_id: str) -> AuditEntry | None:
        for entry in self.read_all():
            if entry.audit_id == audit_id:
                return entry
        return None

    def get_last_entry(self) -> AuditEntry | None:
        entries = self.read_all()
        return entries[-1] if entries else None

    def last_entry_hash(self) -> str | None:
        """entryHash of the last stored record, the link for the next append."""
        records = self.read_records()
        if not records or not isinstance(records[-1], dict):
            return None
        value = records[-1].get("entryHash")
        return value if isinstance(value, str) else None

    def verify_integrity(self, from_date: datetime | str | None = None) -> IntegrityResult:
        # Always the full log; from_date only narrows what gets reported.
        return verify_chain(self.read_records(), from_date)
