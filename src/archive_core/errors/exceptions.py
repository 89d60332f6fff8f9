"""
Unified exception hierarchy for archive fetching.

Provides typed exceptions with retry classification so callers can branch
recovery behavior without parsing messages.
"""

import errno

# Import ErrorCategory from canonical source to avoid duplicate enum issues
# (comparing enums from different classes always returns False)
from archive_core.types import DownloadErrorKind, ErrorCategory

# Message prefixes attached when the fetcher wraps an underlying failure.
# The classification predicates in archive_core.errors.classifiers match on these.
GENERAL_DOWNLOAD_ERROR_PREFIX = "general download error"
UNEXPECTED_ARCHIVE_RESPONSE_PREFIX = "unexpected archive response"
MALFORMED_URI_PREFIX = "malformed store uri"


class PipelineError(Exception):
    """
    Base exception for all pipeline errors.

    Attributes:
        message: Human-readable error description
        category: Error classification for retry decisions
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Download Errors
# =============================================================================


class DownloadError(PipelineError):
    """
    Base class for every failure reported by a fetch.

    Subclasses fix the kind; the category follows from the kind and,
    for local I/O failures, from the errno of the cause.
    """

    kind: DownloadErrorKind


class MalformedURIError(DownloadError):
    """Store URI did not match scheme://bucket/key (caller error, no I/O happened)."""

    kind = DownloadErrorKind.MALFORMED_URI
    category = ErrorCategory.PERMANENT

    def __init__(self, uri: str, reason: str, cause: Exception | None = None):
        super().__init__(
            f"{MALFORMED_URI_PREFIX}: {reason}: {uri!r}",
            cause=cause,
            context={"uri": uri},
        )
        self.uri = uri
        self.reason = reason


class RemoteFetchError(DownloadError):
    """Remote store unreachable or bucket/stream open failed. No local file exists."""

    kind = DownloadErrorKind.REMOTE_FETCH
    category = ErrorCategory.TRANSIENT
    prefix = GENERAL_DOWNLOAD_ERROR_PREFIX

    def __init__(
        self,
        operation: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{self.prefix}: {operation}{detail}", cause, context)
        self.operation = operation


class ArchiveNotFoundError(RemoteFetchError):
    """Store answered that the bucket or object does not exist."""

    category = ErrorCategory.PERMANENT
    prefix = UNEXPECTED_ARCHIVE_RESPONSE_PREFIX


class LocalIOError(DownloadError):
    """
    Create, copy, flush or seek of the local temp file failed.

    Raised only after a remote stream was opened; the partially written file
    has already been removed (best effort) when this propagates.
    """

    kind = DownloadErrorKind.LOCAL_IO

    def __init__(
        self,
        operation: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        detail = f": {cause}" if cause is not None else ""
        super().__init__(
            f"{GENERAL_DOWNLOAD_ERROR_PREFIX}: {operation}{detail}", cause, context
        )
        self.operation = operation
        if isinstance(cause, OSError):
            self.category = classify_os_error(cause)
        else:
            self.category = ErrorCategory.TRANSIENT


# =============================================================================
# Error Classification Utilities
# =============================================================================


def classify_os_error(error: OSError) -> ErrorCategory:
    """
    Classify OSError by errno into error category.

    Conservative classification: only mark as PERMANENT if certain.
    Disk full (ENOSPC), read-only filesystem (EROFS), permission denied (EACCES/EPERM).
    """
    permanent_errnos = (errno.ENOSPC, errno.EROFS, errno.EACCES, errno.EPERM)
    return ErrorCategory.PERMANENT if error.errno in permanent_errnos else ErrorCategory.TRANSIENT


__all__ = [
    "GENERAL_DOWNLOAD_ERROR_PREFIX",
    "UNEXPECTED_ARCHIVE_RESPONSE_PREFIX",
    "MALFORMED_URI_PREFIX",
    "ErrorCategory",
    "DownloadErrorKind",
    "PipelineError",
    "DownloadError",
    "MalformedURIError",
    "RemoteFetchError",
    "ArchiveNotFoundError",
    "LocalIOError",
    "classify_os_error",
]
