"""
Error classification for archive downloads.

Provides the two prefix predicates callers branch on and the not-found
detection used when wrapping store failures.
"""

from typing import Optional

from archive_core.errors.exceptions import (
    GENERAL_DOWNLOAD_ERROR_PREFIX,
    UNEXPECTED_ARCHIVE_RESPONSE_PREFIX,
    ArchiveNotFoundError,
    DownloadError,
    RemoteFetchError,
)

# Service error codes meaning the bucket or object does not exist
# (Azure Storage x-ms-error-code values, S3-style codes)
NOT_FOUND_ERROR_CODES = frozenset(
    {
        "blobnotfound",
        "containernotfound",
        "resourcenotfound",
        "nosuchkey",
        "nosuchbucket",
    }
)


def _has_prefix(err: BaseException, prefix: str) -> bool:
    # Typed errors carry the prefix at the start of their message; anything
    # else may have been re-wrapped by a caller, so look anywhere in the text.
    if isinstance(err, DownloadError):
        return err.message.lower().startswith(prefix)
    return prefix in str(err).lower()


def is_unexpected_archive_response(err: Optional[BaseException]) -> bool:
    """
    Check if an error reports a missing or unexpected remote archive.

    Total over any input: returns False for None.
    """
    if err is None:
        return False
    return _has_prefix(err, UNEXPECTED_ARCHIVE_RESPONSE_PREFIX)


def is_general_download_error(err: Optional[BaseException]) -> bool:
    """
    Check if an error is a generic transport or local I/O failure.

    Total over any input: returns False for None.
    """
    if err is None:
        return False
    return _has_prefix(err, GENERAL_DOWNLOAD_ERROR_PREFIX)


def _status_code(exc: BaseException) -> Optional[int]:
    status = getattr(exc, "status_code", None)
    if status is None:
        response = getattr(exc, "response", None)
        status = getattr(response, "status_code", None)
    return status


def is_not_found_error(exc: Optional[BaseException]) -> bool:
    """
    Check if a store client exception means the bucket or object is missing.

    Only the structure of the exception is inspected, never its message:
    transport errors embed request URLs, and object keys are free text.

    Recognizes:
        - FileNotFoundError and KeyError (local and in-memory stores)
        - HTTP 404, from status_code or response.status_code
        - Service error codes such as BlobNotFound / ContainerNotFound
        - SDK exception types named *NotFound* (Azure ResourceNotFoundError)
    """
    if exc is None:
        return False
    if isinstance(exc, (ArchiveNotFoundError, FileNotFoundError, KeyError)):
        return True
    if _status_code(exc) == 404:
        return True

    error_code = getattr(exc, "error_code", None)
    if error_code is not None:
        # Azure SDK error codes are str enums
        code = getattr(error_code, "value", error_code)
        if str(code).lower() in NOT_FOUND_ERROR_CODES:
            return True

    return "notfound" in type(exc).__name__.lower()


def wrap_remote_error(
    exc: Exception,
    operation: str,
    context: Optional[dict] = None,
) -> RemoteFetchError:
    """
    Wrap a store client failure into the RemoteFetchError family.

    Args:
        exc: Exception raised by the store client
        operation: What was being attempted (e.g. "open reader for gs://b/k")
        context: Extra fields for structured logging

    Returns:
        ArchiveNotFoundError for missing buckets/objects, RemoteFetchError otherwise
    """
    if isinstance(exc, RemoteFetchError):
        if context:
            exc.context.update(context)
        return exc
    if is_not_found_error(exc):
        return ArchiveNotFoundError(operation, cause=exc, context=context)
    return RemoteFetchError(operation, cause=exc, context=context)


__all__ = [
    "NOT_FOUND_ERROR_CODES",
    "is_unexpected_archive_response",
    "is_general_download_error",
    "is_not_found_error",
    "wrap_remote_error",
]
