"""
Download module for fetching archives from object stores.

Components:
    - models: FetchConfig, BucketAttributes, ObjectAttributes, ObjectReader, FetchResult
    - streaming: fetch_to_file() streaming copy into a temp file
    - handle: SelfCleaningFile, deletes its file on close
    - fetcher: ArchiveFetcher, URI -> SelfCleaningFile orchestration
"""

from archive_core.download.fetcher import ArchiveFetcher
from archive_core.download.handle import SelfCleaningFile
from archive_core.download.models import (
    BucketAttributes,
    FetchConfig,
    FetchResult,
    ObjectAttributes,
    ObjectReader,
)
from archive_core.download.streaming import (
    FetchDeadlineExceeded,
    TruncatedStreamError,
    copy_chunks,
    fetch_to_file,
    open_remote_reader,
)

__all__ = [
    "ArchiveFetcher",
    "SelfCleaningFile",
    "FetchConfig",
    "BucketAttributes",
    "ObjectAttributes",
    "ObjectReader",
    "FetchResult",
    "FetchDeadlineExceeded",
    "TruncatedStreamError",
    "copy_chunks",
    "fetch_to_file",
    "open_remote_reader",
]
