"""
GitignoreManager module for srccat.

Provides gitignore pattern parsing and matching with support for:
- Nested .gitignore files with proper scoping
- The repository-local exclude file (.git/info/exclude)
- Pattern precedence (later patterns override earlier ones)
- Negation patterns (!)
- Directory-only patterns (trailing /)
- Anchored patterns (leading /)
- Double-star globs (**)

All patterns are compiled while loading. Once loading is finished the manager
is read-only and may be queried from many threads at once.
"""

import logging
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import pathspec

from srccat.core.errors import IgnoreSourceError, TraversalError

logger = logging.getLogger(__name__)

GITIGNORE_FILE_NAME = ".gitignore"


@dataclass(frozen=True)
class GitignorePattern:
    """
    A parsed gitignore pattern with metadata.

    Attributes:
        raw: Original pattern string (e.g., "!/important.py")
        pattern: Normalized pattern for matching (e.g., "important.py")
        negation: True if pattern starts with ! (re-includes files)
        directory_only: True if pattern ends with / (matches only directories)
        anchored: True if pattern starts with / (root-relative only)
        source_path: Path to the ignore file containing this pattern
        scope: Directory the pattern applies to, relative to root ("" = root)
        spec: Compiled matcher for the normalized pattern
    """

    raw: str
    pattern: str
    negation: bool
    directory_only: bool
    anchored: bool
    source_path: Path
    scope: str
    spec: pathspec.PathSpec

    @classmethod
    def parse(
        cls,
        raw_line: str,
        source_path: Path,
        scope: str = "",
        case_sensitive: bool = True,
    ) -> "GitignorePattern":
        """
        Parse a raw gitignore line into a GitignorePattern.

        Args:
            raw_line: Raw line from the ignore file (already stripped)
            source_path: Path to the ignore file
            scope: Directory containing the ignore file, relative to root
            case_sensitive: Whether matching should respect case

        Returns:
            Parsed GitignorePattern instance
        """
        pattern = raw_line
        negation = False
        directory_only = False
        anchored = False

        if pattern.startswith("!"):
            negation = True
            pattern = pattern[1:]

        if pattern.endswith("/"):
            directory_only = True
            pattern = pattern[:-1]

        if pattern.startswith("/"):
            anchored = True
            pattern = pattern[1:]

        compiled = pattern if case_sensitive else pattern.lower()
        spec = pathspec.PathSpec.from_lines("gitwildmatch", [compiled])

        return cls(
            raw=raw_line,
            pattern=pattern,
            negation=negation,
            directory_only=directory_only,
            anchored=anchored,
            source_path=source_path,
            scope=scope if case_sensitive else scope.lower(),
            spec=spec,
        )


class GitignoreManager:
    """
    Manages gitignore patterns with proper scoping and precedence.

    Supports:
    - Multiple .gitignore files at different directory levels
    - Pattern precedence (later patterns override earlier ones)
    - Negation patterns (!)
    - Directory-only patterns (trailing /)
    - Anchored patterns (leading /)
    - Double-star globs (**)
    """

    def __init__(self, root_path: Path, case_sensitive: bool | None = None):
        """
        Initialize the GitignoreManager.

        Args:
            root_path: Root directory for pattern matching
            case_sensitive: Override case sensitivity (None = auto-detect from platform)
        """
        self._root_path = Path(root_path).resolve()

        # Windows is case-insensitive, POSIX is case-sensitive
        if case_sensitive is None:
            self._case_sensitive = sys.platform != "win32"
        else:
            self._case_sensitive = case_sensitive

        self._patterns: list[GitignorePattern] = []

    def load_gitignore(self, gitignore_path: Path) -> int:
        """
        Load patterns from an ignore file.

        Patterns are scoped to the directory containing the file, except for
        files inside the .git directory, which apply to the whole tree.

        Args:
            gitignore_path: Path to the ignore file

        Returns:
            Number of patterns loaded

        Raises:
            IgnoreSourceError: If the file exists but cannot be read
        """
        gitignore_path = Path(gitignore_path)

        if not gitignore_path.exists():
            logger.debug(f"Ignore file not found: {gitignore_path}")
            return 0

        try:
            content = gitignore_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise IgnoreSourceError(f"Failed to read ignore file {gitignore_path}: {e}") from e

        return self.add_patterns(content.splitlines(), gitignore_path)

    def add_patterns(self, lines: Iterable[str], source_path: Path) -> int:
        """
        Add gitignore-style lines as if they were read from source_path.

        Args:
            lines: Raw lines; blanks and comments are skipped
            source_path: Ignore file the lines belong to (determines scope)

        Returns:
            Number of patterns added
        """
        scope = self._scope_for(source_path)
        patterns_loaded = 0

        for line in lines:
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            try:
                pattern = GitignorePattern.parse(
                    line, source_path, scope, case_sensitive=self._case_sensitive
                )
            except Exception as e:
                logger.warning(f"Malformed pattern '{line}' in {source_path}: {e}")
                continue
            self._patterns.append(pattern)
            patterns_loaded += 1

        if patterns_loaded > 0:
            logger.debug(f"Loaded {patterns_loaded} patterns from {source_path}")

        return patterns_loaded

    def load_gitignore_hierarchy(self, skip_dirs: Iterable[str] = ()) -> int:
        """
        Load .gitignore files from root and all subdirectories.

        Each directory's file is loaded when the top-down walk reaches it,
        so patterns from deeper directories take precedence over shallower
        ones. Directories already ignored by the patterns loaded so far are
        not descended into, the same as in the scan itself.

        Args:
            skip_dirs: Directory names not descended into while searching

        Returns:
            Total number of patterns loaded from all .gitignore files

        Raises:
            IgnoreSourceError: If an ignore file cannot be read
            TraversalError: If a directory cannot be listed
        """
        skip = set(skip_dirs)
        total_patterns = 0

        def _raise(error: OSError) -> None:
            raise TraversalError(f"Failed to search for ignore files: {error}") from error

        for dirpath, dirnames, filenames in self._root_path.walk(on_error=_raise):
            if GITIGNORE_FILE_NAME in filenames:
                total_patterns += self.load_gitignore(dirpath / GITIGNORE_FILE_NAME)

            rel_dir = dirpath.relative_to(self._root_path)
            dirnames[:] = sorted(
                d for d in dirnames
                if d not in skip and not self.matches(rel_dir / d, is_dir=True)
            )

        logger.debug(f"Total patterns loaded from hierarchy: {total_patterns}")
        return total_patterns

    def _scope_for(self, source_path: Path) -> str:
        """Directory a pattern file applies to, relative to root."""
        try:
            rel_dir = Path(source_path).parent.resolve().relative_to(self._root_path)
        except ValueError:
            return ""
        parts = rel_dir.parts
        if parts and parts[0] == ".git":
            return ""
        return "/".join(parts)

    @property
    def root_path(self) -> Path:
        """Return the root directory patterns are matched against."""
        return self._root_path

    @property
    def pattern_count(self) -> int:
        """Return the number of loaded patterns."""
        return len(self._patterns)

    def matches(self, path: Path | str, is_dir: bool = False) -> bool:
        """
        Check if a path is ignored.

        A path is ignored when one of its parent directories is ignored, or
        when the last pattern matching the path itself is not a negation.

        Args:
            path: Path to check (absolute, or relative to root)
            is_dir: True if the path is a directory

        Returns:
            True if the path should be ignored
        """
        if not self._patterns:
            return False

        path = Path(path)
        if path.is_absolute():
            try:
                path = path.relative_to(self._root_path)
            except ValueError:
                return False

        rel_path_str = path.as_posix()
        if not self._case_sensitive:
            rel_path_str = rel_path_str.lower()
        if rel_path_str in ("", "."):
            return False

        # git never re-includes a file whose parent directory is excluded
        parts = rel_path_str.split("/")
        for end in range(1, len(parts)):
            if self._is_ignored("/".join(parts[:end]), is_dir=True):
                return True

        return self._is_ignored(rel_path_str, is_dir=is_dir)

    def _is_ignored(self, rel_path_str: str, is_dir: bool) -> bool:
        """Apply all patterns in order; the last matching pattern wins."""
        ignored = False
        for pattern in self._patterns:
            if self._pattern_matches(pattern, rel_path_str, is_dir):
                ignored = not pattern.negation
        return ignored

    def _pattern_matches(self, pattern: GitignorePattern, rel_path_str: str, is_dir: bool) -> bool:
        """
        Check if a single pattern matches the given path.

        Patterns from a nested .gitignore only apply to paths under the
        directory containing it, and are matched relative to that directory.
        """
        if pattern.directory_only and not is_dir:
            return False

        scoped_path_str = rel_path_str
        if pattern.scope:
            prefix = pattern.scope + "/"
            if not rel_path_str.startswith(prefix):
                return False
            scoped_path_str = rel_path_str[len(prefix):]

        if pattern.anchored:
            return self._match_anchored(pattern, scoped_path_str)
        return self._match_unanchored(pattern, scoped_path_str)

    @staticmethod
    def _match_anchored(pattern: GitignorePattern, rel_path_str: str) -> bool:
        """
        Match an anchored pattern (starts with /).

        Anchored patterns without a path separator only match entries
        directly inside the scope directory.
        """
        if "/" not in pattern.pattern and "**" not in pattern.pattern:
            if "/" in rel_path_str:
                return False
        return pattern.spec.match_file(rel_path_str)

    @staticmethod
    def _match_unanchored(pattern: GitignorePattern, rel_path_str: str) -> bool:
        """
        Match an unanchored pattern.

        Patterns containing a slash are matched against the full scoped path.
        Patterns without one match the basename.
        """
        if "/" in pattern.pattern:
            return pattern.spec.match_file(rel_path_str)
        return pattern.spec.match_file(rel_path_str.rsplit("/", 1)[-1])


def build_ignore_matcher(
    root_path: Path,
    skip_dirs: Iterable[str] = (),
    case_sensitive: bool | None = None,
) -> GitignoreManager:
    """
    Build the ignore matcher for a scan root.

    Loads .git/info/exclude when the root is a git work tree, then every
    .gitignore below the root. A tree without any ignore files yields a
    matcher that matches nothing.

    Args:
        root_path: Root directory being scanned
        skip_dirs: Directory names not searched for .gitignore files
        case_sensitive: Override case sensitivity (None = auto-detect)

    Returns:
        A fully loaded GitignoreManager

    Raises:
        IgnoreSourceError: If ignore metadata exists but cannot be read
        TraversalError: If a directory cannot be searched for ignore files
    """
    manager = GitignoreManager(root_path, case_sensitive=case_sensitive)
    git_dir = manager.root_path / ".git"

    if git_dir.exists() and not git_dir.is_dir():
        # Worktrees and submodules use a ".git" file pointing elsewhere
        logger.debug(f"{git_dir} is not a directory, skipping info/exclude")
    elif git_dir.is_dir():
        exclude_file = git_dir / "info" / "exclude"
        manager.load_gitignore(exclude_file)

    manager.load_gitignore_hierarchy(skip_dirs=skip_dirs)
    logger.debug(f"Ignore matcher for {manager.root_path} holds {manager.pattern_count} patterns")
    return manager
