"""
Data models for scan results.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any


class OutputFormat(str, Enum):
    """Output formats understood by the CLI and formatters."""

    TEXT = "text"
    JSON = "json"
    LIST = "list"

    @property
    def reads_content(self) -> bool:
        """List output never reads file content."""
        return self is not OutputFormat.LIST


@dataclass(frozen=True)
class FileRecord:
    """
    One file that survived filtering.

    Attributes:
        path: Path relative to the scan root, using forward slashes
        content: Decoded file content, or None when the file is binary or
                 content was not requested
    """

    path: str
    content: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output, omitting content when it is absent."""
        data: dict[str, Any] = {"path": self.path}
        if self.content is not None:
            data["content"] = self.content
        return data


class ResultSet:
    """
    Append-only collection of FileRecords shared by scan workers.

    Records are kept in the order workers finished, which varies between runs.
    Use sorted() when a stable order is needed.
    """

    def __init__(self) -> None:
        self._records: list[FileRecord] = []
        self._lock = threading.Lock()

    def append(self, record: FileRecord) -> None:
        """Add a record. Safe to call from any worker thread."""
        with self._lock:
            self._records.append(record)

    def records(self) -> list[FileRecord]:
        """Return a snapshot of the records in completion order."""
        with self._lock:
            return list(self._records)

    def sorted(self) -> list[FileRecord]:
        """Return a snapshot of the records ordered by path."""
        return sorted(self.records(), key=lambda record: record.path)

    def paths(self) -> set[str]:
        """Return the set of recorded relative paths."""
        return {record.path for record in self.records()}

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
