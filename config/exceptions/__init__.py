"""
DataCleanse - Canonical exception hierarchy.

Source of truth for all DataCleanse exceptions.
"""


class DataCleanseError(Exception):
    """Base exception DataCleanse."""


class UnreadableContentError(DataCleanseError):
    """Content cannot be decoded by a fingerprint function."""


class InvalidPatternError(DataCleanseError):
    """Smart-select pattern is missing or not a valid regex."""


class WorkerPoolClosedError(DataCleanseError):
    """Request sent to (or left pending in) a torn-down worker pool."""


class RemovalAlreadyCommittedError(DataCleanseError):
    """Pending removal transaction was already applied."""
