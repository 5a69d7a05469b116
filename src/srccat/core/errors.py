"""Exception types for srccat."""


class SrccatError(Exception):
    """Base exception for srccat errors."""

    pass


class InvalidPatternError(SrccatError, ValueError):
    """A user-supplied exclude pattern could not be compiled."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"invalid exclude pattern '{pattern}': {reason}")
        self.pattern = pattern
        self.reason = reason


class IgnoreSourceError(SrccatError):
    """Version-control ignore metadata exists but could not be read.

    Raised before traversal starts and aborts the run.
    """

    pass


class TraversalError(SrccatError):
    """A directory in the scanned tree could not be listed."""

    pass


class ScanRootError(TraversalError):
    """The scan root is missing, unreadable, or not a directory."""

    pass
