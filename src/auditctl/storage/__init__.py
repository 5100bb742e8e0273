"""Storage backends for the audit chain."""

from auditctl.storage.base import AuditStorage
from auditctl.storage.file import FileStorage
from auditctl.storage.memory import MemoryStorage

__all__ = ["AuditStorage", "FileStorage", "MemoryStorage"]
