"""
Data models for archive fetch operations.

Defines the values passed between the store adapters and the download core:
- FetchConfig: explicit per-fetch limits (replaces global client settings)
- BucketAttributes: descriptive bucket metadata
- ObjectAttributes: object metadata read without the body
- ObjectReader: an open remote stream plus its reported metadata
- FetchResult: what a completed fetch produced
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, Optional

from archive_core.paths.resolver import StoreLocation

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 300.0  # 5 minutes bounds a whole fetch
DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1MB chunks for streaming copy


@dataclass(frozen=True)
class FetchConfig:
    """
    Limits applied to one fetch.

    Attributes:
        timeout_seconds: Upper bound on total fetch latency (open + copy)
        chunk_size: Maximum size of each chunk read from the store
    """

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be > 0, got {self.chunk_size}")


@dataclass
class BucketAttributes:
    """
    Descriptive bucket metadata reported by the store.

    Attributes:
        name: Bucket name
        location: Region or host serving the bucket
        storage_class: Storage tier / SKU
        created_at: Creation time if the store reports one
        last_modified: Last modification time if the store reports one
    """

    name: str
    location: Optional[str] = None
    storage_class: Optional[str] = None
    created_at: Optional[datetime] = None
    last_modified: Optional[datetime] = None


@dataclass
class ObjectReader:
    """
    Open remote stream for a single object.

    Owned by the streaming fetcher for exactly one copy. close() releases the
    underlying connection; errors from the release are logged, never raised.

    Attributes:
        bucket: Bucket name
        key: Object key
        size: Size in bytes reported by the store (None if unknown)
        content_type: MIME type reported by the store
        content_encoding: Content-Encoding reported by the store
        chunks: Iterator yielding the object's bytes in order
        release: Callback closing the underlying stream
    """

    bucket: str
    key: str
    chunks: Iterator[bytes]
    size: Optional[int] = None
    content_type: Optional[str] = None
    content_encoding: Optional[str] = None
    release: Optional[Callable[[], None]] = None
    closed: bool = field(default=False, init=False)

    def __iter__(self) -> Iterator[bytes]:
        return self.chunks

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        # Generators hold open file handles/connections until closed
        close_chunks = getattr(self.chunks, "close", None)
        try:
            if close_chunks is not None:
                close_chunks()
            if self.release is not None:
                self.release()
        except Exception as e:
            logger.warning(
                "Error releasing remote reader",
                extra={
                    "bucket": self.bucket,
                    "key": self.key,
                    "error": str(e)[:200],
                },
            )

    def __enter__(self) -> "ObjectReader":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False


@dataclass
class ObjectAttributes:
    """
    Object metadata reported by the store, read without fetching the body.

    Attributes:
        bucket: Bucket name
        key: Object key
        size: Size in bytes
        content_type: MIME type reported by the store
        content_encoding: Content-Encoding reported by the store
        last_modified: Last modification time if the store reports one
    """

    bucket: str
    key: str
    size: Optional[int] = None
    content_type: Optional[str] = None
    content_encoding: Optional[str] = None
    last_modified: Optional[datetime] = None


@dataclass
class FetchResult:
    """
    Metadata about a completed fetch.

    Attributes:
        location: Parsed coordinates of the fetched object
        local_path: Path of the local temp file
        bytes_written: Number of bytes copied to disk
        content_type: MIME type reported by the store
        content_encoding: Content-Encoding reported by the store
        duration_ms: Wall-clock time of the fetch
    """

    location: StoreLocation
    local_path: Path
    bytes_written: int
    content_type: Optional[str] = None
    content_encoding: Optional[str] = None
    duration_ms: float = 0.0


__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "DEFAULT_CHUNK_SIZE",
    "FetchConfig",
    "BucketAttributes",
    "ObjectAttributes",
    "ObjectReader",
    "FetchResult",
]
