"""
Scan service: walks a directory tree and processes eligible files concurrently.

The walk runs on the calling thread and prunes excluded directories before
descending. Each eligible file is handed to a thread pool; a semaphore bounds
the number of files dispatched but not yet finished, so very large trees do
not queue unbounded work. scan() returns only after every dispatched file has
been processed.
"""

import logging
import os
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from pathlib import Path

from srccat.core.config import ScanConfig
from srccat.core.errors import ScanRootError, TraversalError
from srccat.core.exclusion import ExclusionEvaluator, ExclusionRules
from srccat.core.file_processor import FileProcessor
from srccat.core.gitignore_manager import build_ignore_matcher
from srccat.core.models import OutputFormat, ResultSet
from srccat.core.symlink_validator import SymlinkValidator
from srccat.services.progress import ProgressReporter

logger = logging.getLogger(__name__)

# Receives (absolute path, relative path) for each file to process
_Dispatch = Callable[[str, str], None]


class ScanService:
    """
    Coordinates traversal, exclusion and concurrent file processing.

    One ScanService may run several scans; each scan gets its own result set,
    worker pool and progress reporter.
    """

    def __init__(
        self,
        evaluator: ExclusionEvaluator,
        read_content: bool = True,
        max_workers: int = 8,
        max_in_flight: int = 256,
        follow_symlinks: bool = False,
        progress_interval: int = 100,
    ):
        """
        Initialize the ScanService.

        Args:
            evaluator: Decides which entries are skipped
            read_content: When False, files are recorded by path only
            max_workers: Worker threads reading files
            max_in_flight: Maximum files dispatched but not yet finished
            follow_symlinks: Follow symlinks that stay inside the root
            progress_interval: Files between progress lines
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        if max_in_flight < max_workers:
            raise ValueError(
                f"max_in_flight ({max_in_flight}) must be >= max_workers ({max_workers})"
            )
        self._evaluator = evaluator
        self._read_content = read_content
        self._max_workers = max_workers
        self._max_in_flight = max_in_flight
        self._follow_symlinks = follow_symlinks
        self._progress_interval = progress_interval

    @classmethod
    def from_config(
        cls,
        config: ScanConfig,
        evaluator: ExclusionEvaluator,
        read_content: bool = True,
    ) -> "ScanService":
        """Create a ScanService using scan settings from configuration."""
        return cls(
            evaluator=evaluator,
            read_content=read_content,
            max_workers=config.max_workers,
            max_in_flight=config.max_in_flight,
            follow_symlinks=config.follow_symlinks,
            progress_interval=config.progress_interval,
        )

    def scan(self, root_path: Path | str, reporter: ProgressReporter | None = None) -> ResultSet:
        """
        Scan a directory tree.

        Args:
            root_path: Directory to scan
            reporter: Progress reporter to notify; a stderr reporter is created
                      if omitted. It is started and closed by this call.

        Returns:
            ResultSet holding one record per processed file

        Raises:
            ScanRootError: If the root is missing or not a directory
            TraversalError: If any directory in the tree cannot be listed
        """
        root = validate_scan_root(root_path)
        reporter = reporter or ProgressReporter(interval=self._progress_interval)
        results = ResultSet()
        processor = FileProcessor(
            results, read_content=self._read_content, on_complete=reporter.notify
        )
        validator = SymlinkValidator(root) if self._follow_symlinks else None

        reporter.start()
        try:
            self._run_pool(root, processor, validator)
        finally:
            reporter.close()

        logger.debug(f"Scan of {root} produced {len(results)} records")
        return results

    def _run_pool(
        self,
        root: Path,
        processor: FileProcessor,
        validator: SymlinkValidator | None,
    ) -> None:
        slots = threading.BoundedSemaphore(self._max_in_flight)

        def _finished(future: Future) -> None:
            slots.release()
            if not future.cancelled() and future.exception() is not None:
                logger.error(f"Unexpected error processing file: {future.exception()}")

        with ThreadPoolExecutor(
            max_workers=self._max_workers, thread_name_prefix="srccat-worker"
        ) as executor:

            def dispatch(absolute_path: str, relative_path: str) -> None:
                slots.acquire()
                future = executor.submit(processor.process, absolute_path, relative_path)
                future.add_done_callback(_finished)

            try:
                self._walk(root, "", {root}, dispatch, validator)
            except BaseException:
                # Let running files finish, drop the ones still queued
                executor.shutdown(wait=True, cancel_futures=True)
                raise

    def _walk(
        self,
        directory: Path,
        relative_dir: str,
        visited: set[Path],
        dispatch: _Dispatch,
        validator: SymlinkValidator | None,
    ) -> None:
        """
        Walk one directory depth-first in name order.

        Args:
            directory: Directory to list
            relative_dir: Its path relative to the root ("" for the root)
            visited: Resolved directories on the current walk stack
            dispatch: Called for each file to process
            validator: Symlink validator, or None when symlinks are skipped
        """
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            raise TraversalError(f"Error walking the path {directory}: {e}") from e

        for entry in entries:
            relative_path = f"{relative_dir}/{entry.name}" if relative_dir else entry.name
            try:
                is_symlink = entry.is_symlink()
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = entry.is_file(follow_symlinks=False)
            except OSError as e:
                raise TraversalError(f"Error inspecting {entry.path}: {e}") from e

            target = Path(entry.path)
            if is_symlink:
                if validator is None:
                    logger.debug(f"Skipping symlink (follow_symlinks=False): {relative_path}")
                    continue
                result = validator.is_safe_symlink(target, visited)
                if not result.safe or result.target_path is None:
                    logger.warning(f"Skipping unsafe symlink: {relative_path} - {result.reason}")
                    continue
                target = result.target_path
                is_dir = target.is_dir()
                is_file = target.is_file()

            reason = self._evaluator.exclusion_reason(entry.name, relative_path, is_dir=is_dir)
            if reason is not None:
                logger.debug(f"Excluding {relative_path} ({reason.value})")
                continue

            if is_dir:
                real_path = target.resolve()
                visited.add(real_path)
                try:
                    self._walk(target, relative_path, visited, dispatch, validator)
                finally:
                    visited.discard(real_path)
            elif is_file:
                dispatch(str(target), relative_path)
            else:
                logger.debug(f"Skipping special file: {relative_path}")


def validate_scan_root(root_path: Path | str) -> Path:
    """
    Resolve and check the scan root.

    Raises:
        ScanRootError: If the root is missing or not a directory
    """
    root = Path(root_path)
    if not root.exists():
        raise ScanRootError(f"Specified directory does not exist: {root}")
    if not root.is_dir():
        raise ScanRootError(f"Specified path is not a directory: {root}")
    return root.resolve()


def scan_directory(
    root_path: Path | str,
    output_format: OutputFormat = OutputFormat.TEXT,
    exclude_patterns: Iterable[str] = (),
    config: ScanConfig | None = None,
    reporter: ProgressReporter | None = None,
) -> ResultSet:
    """
    Run a complete scan: validate inputs, build rules, walk and process.

    Startup checks happen before any traversal: the root must exist and every
    exclude pattern must compile. The ignore matcher is built next, and any
    unreadable ignore metadata aborts the run.

    Args:
        root_path: Directory to scan
        output_format: Output format; LIST skips reading file content
        exclude_patterns: User-supplied shell globs
        config: Scan settings; defaults are used if omitted
        reporter: Progress reporter to notify

    Returns:
        ResultSet of processed files

    Raises:
        ScanRootError: If the root is missing or not a directory
        InvalidPatternError: If an exclude pattern does not compile
        IgnoreSourceError: If ignore metadata exists but cannot be read
        TraversalError: If the walk fails
    """
    root = validate_scan_root(root_path)
    patterns = list(exclude_patterns)
    rules = ExclusionRules.build(custom_patterns=patterns)
    matcher = build_ignore_matcher(root, skip_dirs=rules.excluded_dirs)
    rules = replace(rules, ignore_matcher=matcher)

    service = ScanService.from_config(
        config or ScanConfig(),
        ExclusionEvaluator(rules),
        read_content=output_format.reads_content,
    )
    return service.scan(root, reporter=reporter)


__all__ = ["ScanService", "scan_directory", "validate_scan_root"]
