"""
SymlinkValidator module for srccat.

Decides whether a symlink met during traversal may be followed. A symlink is
only followed when:
- Its target exists
- Its target resolves inside the scan root
- Following it does not loop back to a directory already being walked
"""

import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class SymlinkValidationResult:
    """
    Result of symlink validation.

    Attributes:
        safe: True if symlink is safe to follow
        reason: Reason if unsafe (for logging), None if safe
        target_path: Resolved target path if safe, None if unsafe
    """

    safe: bool
    reason: str | None
    target_path: Path | None


class SymlinkValidator:
    """Validates symbolic links against the scan root boundary and cycles."""

    def __init__(self, root_path: Path):
        """
        Initialize the SymlinkValidator.

        Args:
            root_path: Root directory boundary - symlinks must resolve within this
        """
        self._root_path = Path(root_path).resolve()

    @property
    def root_path(self) -> Path:
        """Return the root path boundary."""
        return self._root_path

    def is_safe_symlink(
        self, symlink_path: Path, visited: set[Path] | None = None
    ) -> SymlinkValidationResult:
        """
        Check if a symlink is safe to follow.

        Args:
            symlink_path: Path to the symlink to validate
            visited: Resolved directories on the current walk stack.
                    If None, cycle detection is skipped.

        Returns:
            SymlinkValidationResult with safe status, reason if unsafe, and target path
        """
        symlink_path = Path(symlink_path)

        if not symlink_path.is_symlink():
            return SymlinkValidationResult(False, "Path is not a symlink", None)

        try:
            target_path = symlink_path.resolve(strict=True)
        except (OSError, RuntimeError) as e:
            # RuntimeError: symlink loop on older interpreters
            return self._reject(symlink_path, f"Failed to resolve symlink: {e}")

        try:
            target_path.relative_to(self._root_path)
        except ValueError:
            return self._reject(
                symlink_path, f"Symlink target is outside root directory: {target_path}"
            )

        if visited is not None and self._creates_cycle(target_path, visited):
            return self._reject(
                symlink_path, "Symlink creates a cycle back to an ancestor directory"
            )

        return SymlinkValidationResult(True, None, target_path)

    @staticmethod
    def _reject(symlink_path: Path, reason: str) -> SymlinkValidationResult:
        logger.debug(f"Skipping symlink {symlink_path}: {reason}")
        return SymlinkValidationResult(False, reason, None)

    @staticmethod
    def _creates_cycle(target_path: Path, visited: set[Path]) -> bool:
        """True when the target is on the walk stack or is an ancestor of it."""
        if target_path in visited:
            return True
        return any(target_path in visited_path.parents for visited_path in visited)
