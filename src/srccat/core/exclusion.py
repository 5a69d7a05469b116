"""
Exclusion rules and the evaluator that decides which paths are skipped.

Rules come from four sources: built-in directory names, built-in filename
suffixes and prefixes, the version-control ignore matcher, and user-supplied
glob patterns. They are captured in an immutable ExclusionRules value before
traversal starts, so the evaluator can be shared by any number of threads.
"""

import fnmatch
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol

from srccat.core.errors import InvalidPatternError
from srccat.core.gitignore_manager import GITIGNORE_FILE_NAME

logger = logging.getLogger(__name__)

# Directories that are never descended into, wherever they appear by name
EXCLUDED_DIR_NAMES: frozenset[str] = frozenset([
    # Version control
    ".git",
    # Dependencies
    "node_modules",
    # Build outputs
    "build",
    "dist",
    "out",
    ".next",
    "public",
    ".terraform",
    # Caches and scratch space
    ".cache",
    ".tmp",
    # Editor/IDE metadata
    ".vscode",
    ".idea",
])

# Filename endings that mark generated, lock, backup or office files
EXCLUDED_SUFFIXES: tuple[str, ...] = (
    # Generated data and logs
    ".json",
    ".log",
    ".tfstate",
    ".ico",
    # Lockfiles
    "package-lock.json",
    "yarn.lock",
    ".lock.hcl",
    # Backups and OS droppings
    ".bak",
    ".backup",
    "~",
    ".DS_Store",
    # Type declarations and bundler config
    ".d.ts",
    "config.mjs",
    # Office documents
    ".ppt",
    ".pptx",
    ".doc",
    ".docx",
    ".xls",
    ".xlsx",
    # Go module files
    ".mod",
    ".sum",
)

ENV_FILE_PREFIX = ".env"
ENV_FILE_SUFFIX = ".env"


class IgnoreMatcher(Protocol):
    """Anything that can answer whether a root-relative path is ignored."""

    def matches(self, path: Path | str, is_dir: bool = False) -> bool:
        ...


class ExclusionReason(str, Enum):
    """The rule that excluded a path."""

    EXCLUDED_DIR = "excluded directory"
    EXCLUDED_SUFFIX = "excluded suffix"
    ENV_FILE = "environment file"
    IGNORE_FILE = "ignore file"
    CUSTOM_PATTERN = "custom pattern"
    GITIGNORE = "gitignore"


@dataclass(frozen=True)
class CompiledPattern:
    """A user-supplied shell glob compiled once at startup."""

    raw: str
    regex: re.Pattern[str]

    def matches(self, name: str, relative_path: str) -> bool:
        """Match against the base name or the full relative path."""
        return bool(self.regex.match(name) or self.regex.match(relative_path))


def _unterminated_class_at(pattern: str) -> int:
    """
    Return the index of an unterminated [ character class, or -1.

    Follows fnmatch's bracket rules: an optional leading ! and a leading ]
    are part of the class body.
    """
    i, n = 0, len(pattern)
    while i < n:
        if pattern[i] != "[":
            i += 1
            continue
        j = i + 1
        if j < n and pattern[j] == "!":
            j += 1
        if j < n and pattern[j] == "]":
            j += 1
        while j < n and pattern[j] != "]":
            j += 1
        if j >= n:
            return i
        i = j + 1
    return -1


def compile_pattern(raw: str) -> CompiledPattern:
    """
    Compile a single shell glob.

    Raises:
        InvalidPatternError: If the pattern is empty or malformed
    """
    if not raw or not raw.strip():
        raise InvalidPatternError(raw, "pattern is empty")

    position = _unterminated_class_at(raw)
    if position >= 0:
        raise InvalidPatternError(raw, f"unterminated character class at position {position}")

    try:
        regex = re.compile(fnmatch.translate(raw))
    except re.error as e:
        raise InvalidPatternError(raw, str(e)) from e
    return CompiledPattern(raw=raw, regex=regex)


def compile_patterns(patterns: Iterable[str]) -> tuple[CompiledPattern, ...]:
    """
    Compile user-supplied glob patterns.

    Any invalid pattern fails the whole batch.

    Raises:
        InvalidPatternError: On the first pattern that does not compile
    """
    return tuple(compile_pattern(raw) for raw in patterns)


@dataclass(frozen=True)
class ExclusionRules:
    """
    Immutable set of exclusion rules for one scan.

    Attributes:
        excluded_dirs: Directory names whose whole subtree is skipped
        excluded_suffixes: Filename endings that are skipped
        env_prefix: Prefix that marks environment files
        env_suffix: Extension that marks environment files
        ignore_file_name: Name of the ignore-rules file, which is itself skipped
        custom_patterns: Compiled user-supplied globs
        ignore_matcher: Version-control ignore matcher, if any
    """

    excluded_dirs: frozenset[str] = EXCLUDED_DIR_NAMES
    excluded_suffixes: tuple[str, ...] = EXCLUDED_SUFFIXES
    env_prefix: str = ENV_FILE_PREFIX
    env_suffix: str = ENV_FILE_SUFFIX
    ignore_file_name: str = GITIGNORE_FILE_NAME
    custom_patterns: tuple[CompiledPattern, ...] = ()
    ignore_matcher: IgnoreMatcher | None = None

    @classmethod
    def build(
        cls,
        custom_patterns: Iterable[str] = (),
        ignore_matcher: IgnoreMatcher | None = None,
    ) -> "ExclusionRules":
        """
        Create the built-in rule set plus custom patterns and ignore matcher.

        Raises:
            InvalidPatternError: If a custom pattern does not compile
        """
        return cls(
            custom_patterns=compile_patterns(custom_patterns),
            ignore_matcher=ignore_matcher,
        )


class ExclusionEvaluator:
    """
    Decides whether a file or directory is excluded from a scan.

    Rules are checked in a fixed order and the first match wins. No rule
    re-includes a path excluded by an earlier one. The evaluator holds no
    mutable state.
    """

    def __init__(self, rules: ExclusionRules | None = None):
        self._rules = rules or ExclusionRules()

    def should_exclude(self, name: str, relative_path: str, is_dir: bool = False) -> bool:
        """
        Return True if the entry should be skipped.

        Args:
            name: Base name of the file or directory
            relative_path: Path relative to the scan root, using forward slashes
            is_dir: True if the entry is a directory
        """
        return self.exclusion_reason(name, relative_path, is_dir=is_dir) is not None

    def exclusion_reason(
        self, name: str, relative_path: str, is_dir: bool = False
    ) -> ExclusionReason | None:
        """Return the first rule that excludes the entry, or None if it is kept."""
        rules = self._rules

        if name in rules.excluded_dirs or any(
            relative_path.startswith(d + "/") for d in rules.excluded_dirs
        ):
            return ExclusionReason.EXCLUDED_DIR

        if name.endswith(rules.excluded_suffixes):
            return ExclusionReason.EXCLUDED_SUFFIX

        if name.startswith(rules.env_prefix) or name.endswith(rules.env_suffix):
            return ExclusionReason.ENV_FILE

        if name == rules.ignore_file_name:
            return ExclusionReason.IGNORE_FILE

        for pattern in rules.custom_patterns:
            if pattern.matches(name, relative_path):
                return ExclusionReason.CUSTOM_PATTERN

        if rules.ignore_matcher is not None and rules.ignore_matcher.matches(
            relative_path, is_dir=is_dir
        ):
            return ExclusionReason.GITIGNORE

        return None
