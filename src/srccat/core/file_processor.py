"""
Per-file processing: stat, read, classify and record one file.
"""

import logging
import os
from collections.abc import Callable
from pathlib import Path

from srccat.core.models import FileRecord, ResultSet
from srccat.core.safety import MAX_FILE_SIZE, SafetyVerdict, classify, is_oversize

logger = logging.getLogger(__name__)

# Called with the relative path once a file has been handled
CompletionCallback = Callable[[str], None]


class FileProcessor:
    """
    Turns one eligible file into zero or one FileRecord.

    I/O errors are logged as warnings and the file is skipped; they never
    propagate to the scan.
    """

    def __init__(
        self,
        results: ResultSet,
        read_content: bool = True,
        on_complete: CompletionCallback | None = None,
    ):
        """
        Initialize the FileProcessor.

        Args:
            results: Shared result set that records are appended to
            read_content: When False, only paths are recorded and files are never opened
            on_complete: Notified with the relative path after every file
        """
        self._results = results
        self._read_content = read_content
        self._on_complete = on_complete

    def process(self, absolute_path: Path | str, relative_path: str) -> FileRecord | None:
        """
        Process a single file.

        Args:
            absolute_path: Path used to open the file
            relative_path: Root-relative path stored on the record

        Returns:
            The record appended to the result set, or None if the file was skipped
        """
        try:
            record = self._build_record(Path(absolute_path), relative_path)
            if record is not None:
                self._results.append(record)
            return record
        finally:
            if self._on_complete is not None:
                self._on_complete(relative_path)

    def _build_record(self, absolute_path: Path, relative_path: str) -> FileRecord | None:
        # The size may have changed since the directory was listed
        try:
            size_bytes = os.stat(absolute_path).st_size
        except OSError as e:
            logger.warning(f"Error getting file info for {absolute_path}: {e}")
            return None

        if is_oversize(size_bytes):
            logger.warning(
                f"Skipping large file: {absolute_path} "
                f"(size: {size_bytes} bytes, limit: {MAX_FILE_SIZE} bytes)"
            )
            return None

        if not self._read_content:
            return FileRecord(path=relative_path)

        try:
            data = self._read_bytes(absolute_path)
        except OSError as e:
            logger.warning(f"Failed to read file {absolute_path}: {e}")
            return None

        verdict = classify(len(data), data)
        if verdict is SafetyVerdict.OVERSIZE:
            logger.warning(f"Skipping large file: {absolute_path} (grew to {len(data)} bytes)")
            return None
        if verdict is SafetyVerdict.BINARY:
            logger.debug(f"Omitting content of binary file: {relative_path}")
            return FileRecord(path=relative_path)

        return FileRecord(path=relative_path, content=data.decode("utf-8", errors="replace"))

    @staticmethod
    def _read_bytes(path: Path) -> bytes:
        # One byte past the cap reveals growth since stat
        with path.open("rb") as handle:
            return handle.read(MAX_FILE_SIZE + 1)
