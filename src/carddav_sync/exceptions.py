"""
Exception classes for carddav-sync.
"""


class CardDAVSyncError(Exception):
    """Base exception for all carddav-sync errors."""
    pass


class ConfigurationError(CardDAVSyncError, ValueError):
    """Raised when configuration is invalid or missing."""
    pass


class RemoteFetchError(CardDAVSyncError):
    """Raised when the CardDAV server cannot be reached or answers badly.

    Covers transport failures, timeouts, non-success status codes and
    malformed multistatus responses.  A single malformed vCard is *not*
    a ``RemoteFetchError``; the client drops it and keeps going.
    """
    pass


class LocalStoreError(CardDAVSyncError):
    """Raised when the local contact collection cannot be read or written."""
    pass
