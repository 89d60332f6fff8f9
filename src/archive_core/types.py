"""
Core types and protocols used across modules.

This module provides base types, enums, and protocol definitions that are
shared across the core library to ensure consistency and type safety.
"""

from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from archive_core.download.models import BucketAttributes, ObjectAttributes, ObjectReader


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Used by callers to decide whether a failed fetch is worth attempting
    again on a later invocation. Nothing in the core retries on its own.

    Categories:
        TRANSIENT: Temporary failures that may succeed later
                   (e.g., network timeouts, interrupted streams)
        AUTH: Authentication failures requiring credential refresh
        PERMANENT: Failures that won't succeed on retry
                   (e.g., malformed URIs, missing objects, disk full)
        UNKNOWN: Unclassified errors, may retry conservatively
    """

    TRANSIENT = "transient"
    AUTH = "auth"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


class DownloadErrorKind(Enum):
    """Tag carried by every failed fetch. Exactly one kind per failure."""

    MALFORMED_URI = "malformed_uri"
    REMOTE_FETCH = "remote_fetch"
    LOCAL_IO = "local_io"


class RemoteStreamProvider(Protocol):
    """
    Narrow capability the download core needs from an object store client.

    Authentication, connection management and transport tuning all belong to
    the implementation. Implementations raise their native exceptions; the
    streaming fetcher wraps and classifies them.
    """

    def open_bucket(self, name: str) -> Any:
        """
        Return a reference to the named bucket.

        Args:
            name: Bucket (container) name

        Returns:
            Opaque bucket reference passed back to the other methods
        """
        ...

    def bucket_attrs(self, bucket: Any) -> "BucketAttributes":
        """
        Fetch descriptive attributes of a bucket.

        Args:
            bucket: Reference returned by open_bucket()

        Returns:
            BucketAttributes for the bucket
        """
        ...

    def object_attrs(self, bucket: Any, key: str, timeout: float) -> "ObjectAttributes":
        """
        Fetch metadata of one object without reading its body.

        Args:
            bucket: Reference returned by open_bucket()
            key: Object key within the bucket
            timeout: Seconds the store client may spend on the request

        Returns:
            ObjectAttributes for the object
        """
        ...

    def open_object_reader(
        self, bucket: Any, key: str, timeout: float, chunk_size: int
    ) -> "ObjectReader":
        """
        Open a streaming reader for one object.

        Args:
            bucket: Reference returned by open_bucket()
            key: Object key within the bucket
            timeout: Seconds the store client may spend on each network call
            chunk_size: Maximum size of each chunk the reader yields

        Returns:
            ObjectReader owning the open remote stream
        """
        ...


__all__ = [
    "ErrorCategory",
    "DownloadErrorKind",
    "RemoteStreamProvider",
]
