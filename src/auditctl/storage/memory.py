"""In-process list-backed storage."""

from auditctl.audit.models import AuditEntry
from auditctl.storage.base import AuditStorage


class MemoryStorage(AuditStorage):
    """Keeps entries in a list. Nothing survives the process."""

    def __init__(self, entries: list[AuditEntry] | None = None) -> None:
        super().__init__()
        self._entries: list[AuditEntry] = list(entries or [])

    def append(self, entry: AuditEntry) -> None:
        self._entries.append(entry)

    def read_all(self) -> list[AuditEntry]:
        return list(self._entries)
