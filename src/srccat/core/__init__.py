"""
Core Layer - Exclusion rules, ignore matching, safety checks and per-file processing.
"""

from srccat.core.config import (
    LoggingConfig,
    ScanConfig,
    SrccatConfig,
    load_config,
)
from srccat.core.errors import (
    IgnoreSourceError,
    InvalidPatternError,
    ScanRootError,
    SrccatError,
    TraversalError,
)
from srccat.core.exclusion import (
    EXCLUDED_DIR_NAMES,
    EXCLUDED_SUFFIXES,
    ExclusionEvaluator,
    ExclusionReason,
    ExclusionRules,
    compile_patterns,
)
from srccat.core.file_processor import FileProcessor
from srccat.core.gitignore_manager import GitignoreManager, build_ignore_matcher
from srccat.core.models import FileRecord, OutputFormat, ResultSet
from srccat.core.safety import (
    BINARY_SNIFF_BYTES,
    MAX_FILE_SIZE,
    SafetyVerdict,
    classify,
    is_binary,
    is_oversize,
)

__all__ = [
    # Config
    "SrccatConfig",
    "ScanConfig",
    "LoggingConfig",
    "load_config",
    # Errors
    "SrccatError",
    "InvalidPatternError",
    "IgnoreSourceError",
    "TraversalError",
    "ScanRootError",
    # Exclusion
    "EXCLUDED_DIR_NAMES",
    "EXCLUDED_SUFFIXES",
    "ExclusionEvaluator",
    "ExclusionReason",
    "ExclusionRules",
    "compile_patterns",
    "GitignoreManager",
    "build_ignore_matcher",
    # Processing
    "FileProcessor",
    "FileRecord",
    "ResultSet",
    "OutputFormat",
    # Safety
    "MAX_FILE_SIZE",
    "BINARY_SNIFF_BYTES",
    "SafetyVerdict",
    "classify",
    "is_binary",
    "is_oversize",
]
