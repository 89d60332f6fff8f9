"""
Archive fetcher with clean interface.

Provides ArchiveFetcher, which orchestrates:
- Store URI resolution (scheme://bucket/key -> StoreLocation)
- Streaming fetch into a temp file
- Logging of the outcome with error classification

Clean interface: URI -> SelfCleaningFile (or a DownloadError)
"""

import asyncio
import logging
import tempfile
from pathlib import Path
from typing import Iterable, Optional

from archive_core.download.handle import SelfCleaningFile
from archive_core.download.models import BucketAttributes, FetchConfig, ObjectAttributes
from archive_core.download.streaming import fetch_to_file
from archive_core.errors.classifiers import wrap_remote_error
from archive_core.errors.exceptions import DownloadError
from archive_core.logging.context_managers import OperationContext
from archive_core.logging.utilities import log_exception
from archive_core.paths.resolver import StoreLocation, resolve_store_uri
from archive_core.types import RemoteStreamProvider

logger = logging.getLogger(__name__)


class ArchiveFetcher:
    """
    Fetches archives from an object store into self-deleting temp files.

    This class orchestrates one download per call:
    1. Resolve the URI into bucket/key coordinates
    2. Stream the object into tmp_dir / <file name>
    3. Return a SelfCleaningFile positioned at offset 0

    Usage:
        fetcher = ArchiveFetcher(provider, tmp_dir=Path("/tmp/archives"))
        try:
            with fetcher.fetch("gs://pow-play-cms/path/archive.tar.gz") as archive:
                process(archive)
        except DownloadError as e:
            if is_unexpected_archive_response(e):
                ...  # object missing, don't retry
            else:
                ...  # transport or disk failure, retry later

    Concurrency:
        Calls block for the whole copy. Two fetches of objects sharing a file
        name into the same tmp_dir overwrite each other; use distinct
        directories or serialize them.
    """

    def __init__(
        self,
        provider: RemoteStreamProvider,
        tmp_dir: Optional[Path] = None,
        config: Optional[FetchConfig] = None,
        allowed_schemes: Optional[Iterable[str]] = None,
    ):
        """
        Initialize ArchiveFetcher.

        Args:
            provider: Store capability (Azure Blob, local directory, in-memory)
            tmp_dir: Directory for temp files (default: system temp dir)
            config: Fetch limits (default: FetchConfig())
            allowed_schemes: Optional URI scheme allowlist (None = any scheme)
        """
        self._provider = provider
        self._tmp_dir = Path(tmp_dir) if tmp_dir is not None else Path(tempfile.gettempdir())
        self._config = config or FetchConfig()
        self._allowed_schemes = (
            frozenset(allowed_schemes) if allowed_schemes is not None else None
        )

    @property
    def tmp_dir(self) -> Path:
        return self._tmp_dir

    @property
    def config(self) -> FetchConfig:
        return self._config

    def resolve(self, uri: str) -> StoreLocation:
        return resolve_store_uri(uri, allowed_schemes=self._allowed_schemes)

    def fetch(self, uri: str, config: Optional[FetchConfig] = None) -> SelfCleaningFile:
        """
        Download the object named by uri and return a self-deleting handle.

        Args:
            uri: Store URI (scheme://bucket/key)
            config: Per-call override of the fetcher's FetchConfig

        Returns:
            SelfCleaningFile positioned at offset 0

        Raises:
            MalformedURIError: URI does not name a bucket and object
            ArchiveNotFoundError: Bucket or object missing
            RemoteFetchError: Store unreachable or stream open failed
            LocalIOError: Temp file create/copy/seek failed
        """
        try:
            location = self.resolve(uri)
            return fetch_to_file(
                self._provider,
                location,
                self._tmp_dir,
                config=config or self._config,
            )
        except DownloadError as e:
            log_exception(
                logger,
                e,
                "Archive fetch failed",
                level=logging.WARNING,
                include_traceback=False,
                download_url=uri,
                error_type=e.kind.value,
            )
            raise

    async def async_fetch(
        self, uri: str, config: Optional[FetchConfig] = None
    ) -> SelfCleaningFile:
        """
        Download the object named by uri (async, non-blocking).

        Runs fetch() in a worker thread so async pipeline stages keep
        serving their event loop during the copy.
        """
        return await asyncio.to_thread(self.fetch, uri, config)

    def describe(self, uri: str) -> tuple[BucketAttributes, ObjectAttributes]:
        """
        Look up bucket attributes and object metadata without downloading.

        Raises:
            MalformedURIError: URI does not name a bucket and object
            ArchiveNotFoundError: Bucket or object missing
            RemoteFetchError: Store failure
        """
        with OperationContext(logger, "describe", download_url=uri) as op:
            location = self.resolve(uri)
            context = {"uri": str(location), "bucket": location.bucket, "key": location.key}
            try:
                bucket = self._provider.open_bucket(location.bucket)
                bucket_attrs = self._provider.bucket_attrs(bucket)
                object_attrs = self._provider.object_attrs(
                    bucket, location.key, timeout=self._config.timeout_seconds
                )
            except Exception as e:
                raise wrap_remote_error(
                    e, f"read attributes of {location}", context=context
                ) from e
            op.add_context(blob_size=object_attrs.size)
        return bucket_attrs, object_attrs


__all__ = ["ArchiveFetcher"]
