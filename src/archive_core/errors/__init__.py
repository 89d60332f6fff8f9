"""
Error classification and exception hierarchy.

Provides:
- ErrorCategory and DownloadErrorKind enums
- PipelineError base with category, cause and context
- DownloadError family reported by fetches
- Prefix predicates for branching on fetch failures
"""

from archive_core.errors.classifiers import (
    is_general_download_error,
    is_not_found_error,
    is_unexpected_archive_response,
    wrap_remote_error,
)
from archive_core.errors.exceptions import (
    GENERAL_DOWNLOAD_ERROR_PREFIX,
    MALFORMED_URI_PREFIX,
    UNEXPECTED_ARCHIVE_RESPONSE_PREFIX,
    ArchiveNotFoundError,
    DownloadError,
    DownloadErrorKind,
    # Enums
    ErrorCategory,
    LocalIOError,
    MalformedURIError,
    # Base class
    PipelineError,
    RemoteFetchError,
    classify_os_error,
)

__all__ = [
    # Enums
    "ErrorCategory",
    "DownloadErrorKind",
    # Base class
    "PipelineError",
    # Download errors
    "DownloadError",
    "MalformedURIError",
    "RemoteFetchError",
    "ArchiveNotFoundError",
    "LocalIOError",
    "GENERAL_DOWNLOAD_ERROR_PREFIX",
    "UNEXPECTED_ARCHIVE_RESPONSE_PREFIX",
    "MALFORMED_URI_PREFIX",
    # Classification utilities
    "classify_os_error",
    "is_general_download_error",
    "is_unexpected_archive_response",
    "is_not_found_error",
    "wrap_remote_error",
]
