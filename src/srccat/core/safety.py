"""
Safety checks applied to every file before its content is emitted.

Both checks are heuristics. A file under the size cap can still be huge once
rendered, and a NUL-free prefix does not prove a file is text. They exist to
keep obvious binaries and generated blobs out of the output.
"""

from enum import Enum

# Files strictly larger than this are skipped entirely
MAX_FILE_SIZE = 1 * 1024 * 1024

# Only this many leading bytes are inspected for NUL bytes
BINARY_SNIFF_BYTES = 1024


class SafetyVerdict(str, Enum):
    """Outcome of classifying a single file."""

    TEXT = "text"
    BINARY = "binary"
    OVERSIZE = "oversize"


def is_oversize(size_bytes: int) -> bool:
    """Return True when a file exceeds MAX_FILE_SIZE."""
    return size_bytes > MAX_FILE_SIZE


def is_binary(sample: bytes) -> bool:
    """Return True when a NUL byte appears within the sniffed prefix."""
    return b"\x00" in sample[:BINARY_SNIFF_BYTES]


def classify(size_bytes: int, sample: bytes) -> SafetyVerdict:
    """
    Classify a file from its size and a content sample.

    Args:
        size_bytes: Size of the file as reported by stat
        sample: Leading bytes of the file; only the first
                BINARY_SNIFF_BYTES are considered

    Returns:
        SafetyVerdict.OVERSIZE, BINARY, or TEXT (checked in that order)
    """
    if is_oversize(size_bytes):
        return SafetyVerdict.OVERSIZE
    if is_binary(sample):
        return SafetyVerdict.BINARY
    return SafetyVerdict.TEXT
