"""Append-only JSONL file storage."""

import fcntl
import json
import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from auditctl.audit.models import AuditEntry
from auditctl.storage.base import AuditStorage

log = logging.getLogger(__name__)


class FileStorage(AuditStorage):
    """One JSON object per line in a single append-only file.

    Each append is one complete newline-terminated line written, flushed
    and fsynced in a single call, so readers never see half an entry.
    Lines that are not UTF-8 or not JSON are skipped with a warning. Lines
    that are JSON but not a valid entry stay in the chain for verification
    and are left out of queries.
    """

    def __init__(self, log_path: Path | str, create_if_missing: bool = True) -> None:
        super().__init__()
        self.log_path = Path(log_path).resolve()
        self.lock_path = self.log_path.with_name(self.log_path.name + ".lock")

        if create_if_missing:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self.log_path.touch(exist_ok=True)

    def append(self, entry: AuditEntry) -> None:
        line = json.dumps(entry.to_record(), ensure_ascii=False) + "\n"
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(line)
            f.flush()
            os.fsync(f.fileno())
        log.debug("Appended audit entry %s to %s", entry.audit_id, self.log_path)

    def _scan(self) -> Iterator[tuple[int, Any]]:
        """Yield (line number, decoded JSON) for each readable line."""
        if not self.log_path.exists():
            return

        with open(self.log_path, "rb") as f:
            for lineno, raw in enumerate(f, start=1):
                try:
                    line = raw.decode("utf-8").strip()
                except UnicodeDecodeError as e:
                    log.warning(
                        "Skipping undecodable line %d in %s: %s", lineno, self.log_path, e.reason
                    )
                    continue
                if not line:
                    continue
                try:
                    yield lineno, json.loads(line)
                except json.JSONDecodeError as e:
                    log.warning("Skipping malformed line %d in %s: %s", lineno, self.log_path, e.msg)

    def read_records(self) -> list[Any]:
        return [record for _, record in self._scan()]

    def read_all(self) -> list[AuditEntry]:
        """Read every valid entry, top to bottom."""
        entries = []
        for lineno, record in self._scan():
            try:
                entries.append(AuditEntry.model_validate(record))
            except ValidationError as e:
                log.warning(
                    "Line %d in %s is not a valid audit entry: %s",
                    lineno,
                    self.log_path,
                    e.errors(include_url=False)[0]["msg"],
                )
        return entries

    @contextmanager
    def writer_lock(self) -> Iterator[None]:
        """Exclusive across threads and, via flock, across processes."""
        with super().writer_lock():
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.lock_path, "a") as lock_file:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
