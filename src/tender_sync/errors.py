"""Exception taxonomy for sync runs."""

from typing import Optional


class TenderSyncError(Exception):
    """Base class for all tender-sync errors."""


class FetchError(TenderSyncError):
    """Feed could not be retrieved (network, timeout, non-2xx). Fatal to the run."""


class ParseError(TenderSyncError):
    """Feed document is not a well-formed feed. Fatal to the run."""


class PersistenceError(TenderSyncError):
    """A store operation failed. Per-entry: recorded, never aborts the batch."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class RawPersistenceError(PersistenceError):
    """Raw audit write failed. Logged and swallowed."""
