"""
Streaming fetch of a remote object into a local temp file.

The local file, not heap memory, absorbs the payload: bytes are copied chunk
by chunk from the store's stream and only one chunk is held at a time.

Failure handling by stage:
    open reader  -> RemoteFetchError / ArchiveNotFoundError, nothing to clean up
    create file  -> LocalIOError, nothing to clean up
    copy / seek  -> partial file removed (best effort), then LocalIOError

Does NOT perform:
- Retry logic (caller's responsibility; a failed fetch leaves no file behind)
- Collision avoidance on the temp path (same file name means same path)
"""

import logging
import time
from pathlib import Path
from typing import BinaryIO, Optional

from archive_core.download.handle import SelfCleaningFile
from archive_core.download.models import (
    DEFAULT_CHUNK_SIZE,
    FetchConfig,
    FetchResult,
    ObjectReader,
)
from archive_core.errors.classifiers import wrap_remote_error
from archive_core.errors.exceptions import LocalIOError
from archive_core.paths.resolver import StoreLocation
from archive_core.types import RemoteStreamProvider

logger = logging.getLogger(__name__)


class FetchDeadlineExceeded(TimeoutError):
    """Raised inside the copy loop when the total fetch timeout elapses."""

    def __init__(self, timeout_seconds: float):
        super().__init__(f"fetch exceeded timeout of {timeout_seconds}s")
        self.timeout_seconds = timeout_seconds


class TruncatedStreamError(IOError):
    """Remote stream ended before delivering the size the store reported."""

    def __init__(self, expected: int, received: int):
        super().__init__(f"stream ended after {received} of {expected} bytes")
        self.expected = expected
        self.received = received


def open_remote_reader(
    provider: RemoteStreamProvider,
    location: StoreLocation,
    timeout: float,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> ObjectReader:
    """
    Open a streaming reader for location via the provider.

    Args:
        provider: Store capability
        location: Parsed coordinates
        timeout: Seconds the store client may spend on each network call
        chunk_size: Maximum size of each chunk the reader yields

    Returns:
        ObjectReader owned by the caller

    Raises:
        ArchiveNotFoundError: Bucket or object does not exist
        RemoteFetchError: Any other store failure
    """
    context = {"uri": str(location), "bucket": location.bucket, "key": location.key}
    try:
        bucket = provider.open_bucket(location.bucket)
        return provider.open_object_reader(
            bucket, location.key, timeout=timeout, chunk_size=chunk_size
        )
    except Exception as e:
        raise wrap_remote_error(
            e, f"open reader for {location}", context=context
        ) from e


def copy_chunks(
    reader: ObjectReader,
    dest: BinaryIO,
    deadline: Optional[float] = None,
    timeout_seconds: Optional[float] = None,
) -> int:
    """
    Copy every chunk from reader into dest.

    Args:
        reader: Open remote reader
        dest: Writable binary file
        deadline: time.monotonic() value after which the copy aborts
        timeout_seconds: Timeout the deadline was derived from (for the message)

    Returns:
        Number of bytes written

    Raises:
        FetchDeadlineExceeded: Deadline passed with bytes still outstanding
        TruncatedStreamError: Fewer bytes than reader.size arrived
        Exception: Whatever the stream or the file raised
    """
    bytes_written = 0
    for chunk in reader:
        if chunk:
            dest.write(chunk)
            bytes_written += len(chunk)
        # A stream that already delivered every reported byte is complete
        complete = reader.size is not None and bytes_written >= reader.size
        if not complete and deadline is not None and time.monotonic() > deadline:
            raise FetchDeadlineExceeded(timeout_seconds or 0.0)

    if reader.size is not None and bytes_written != reader.size:
        raise TruncatedStreamError(reader.size, bytes_written)
    return bytes_written


def _discard_partial_file(file: Optional[BinaryIO], path: Path) -> None:
    """Best-effort close+remove of a partially written file. Never raises."""
    if file is not None:
        try:
            file.close()
        except OSError as e:
            logger.debug(
                "Error closing partial file",
                extra={"destination_path": str(path), "error": str(e)},
            )
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(
            "Failed to remove partial download",
            extra={"destination_path": str(path), "error": str(e)},
        )


def fetch_to_file(
    provider: RemoteStreamProvider,
    location: StoreLocation,
    tmp_dir: Path,
    config: Optional[FetchConfig] = None,
) -> SelfCleaningFile:
    """
    Stream a remote object into tmp_dir and return a self-deleting handle.

    The file is created at tmp_dir / location.file_name, overwriting any file
    already at that path. On success the handle is positioned at offset 0 and
    owns the file. On any failure no file is left at that path.

    Args:
        provider: Store capability used to open the remote stream
        location: Parsed coordinates of the object
        tmp_dir: Directory for the temp file (created if missing)
        config: Fetch limits (default: FetchConfig())

    Returns:
        SelfCleaningFile reading the downloaded bytes

    Raises:
        ArchiveNotFoundError: Object or bucket does not exist
        RemoteFetchError: Store failure before any local file was created
        LocalIOError: File create/copy/seek failure (partial file removed)

    Example:
        location = resolve_store_uri("gs://b1/x/y/z.tar.gz")
        with fetch_to_file(provider, location, Path("/tmp/archives")) as archive:
            data = archive.read()
    """
    config = config or FetchConfig()
    tmp_dir = Path(tmp_dir)
    local_path = tmp_dir / location.file_name
    context = {
        "uri": str(location),
        "bucket": location.bucket,
        "key": location.key,
        "destination_path": str(local_path),
    }

    start = time.monotonic()
    deadline = start + config.timeout_seconds

    # Step 1: open the remote stream (no local state yet)
    reader = open_remote_reader(
        provider, location, timeout=config.timeout_seconds, chunk_size=config.chunk_size
    )

    try:
        logger.debug(
            "Opened remote reader",
            extra={
                "download_url": str(location),
                "blob_size": reader.size,
                "content_type": reader.content_type,
                "content_encoding": reader.content_encoding,
            },
        )

        # Step 2: create (or truncate) the local file
        try:
            tmp_dir.mkdir(parents=True, exist_ok=True)
            file = open(local_path, "w+b")
        except OSError as e:
            raise LocalIOError(f"create {local_path}", cause=e, context=context) from e

        # Step 3: stream the bytes to disk
        try:
            bytes_written = copy_chunks(
                reader, file, deadline=deadline, timeout_seconds=config.timeout_seconds
            )
            file.flush()
        except Exception as e:
            _discard_partial_file(file, local_path)
            raise LocalIOError(
                f"copy {location} to {local_path}", cause=e, context=context
            ) from e
        except BaseException:
            # KeyboardInterrupt / SystemExit mid-copy still must not leave a file
            _discard_partial_file(file, local_path)
            raise

        # Step 4: rewind so the caller reads from the start
        try:
            file.seek(0)
        except OSError as e:
            _discard_partial_file(file, local_path)
            raise LocalIOError(f"seek {local_path}", cause=e, context=context) from e

        result = FetchResult(
            location=location,
            local_path=local_path,
            bytes_written=bytes_written,
            content_type=reader.content_type,
            content_encoding=reader.content_encoding,
            duration_ms=round((time.monotonic() - start) * 1000, 2),
        )
    finally:
        # Step 5: the remote stream is never retained past the copy
        reader.close()

    logger.info(
        "Fetched archive to temp file",
        extra={
            "download_url": str(location),
            "destination_path": str(local_path),
            "bytes_downloaded": result.bytes_written,
            "content_type": result.content_type,
            "duration_ms": result.duration_ms,
        },
    )
    return SelfCleaningFile(file, local_path, result=result)


__all__ = [
    "FetchDeadlineExceeded",
    "TruncatedStreamError",
    "open_remote_reader",
    "copy_chunks",
    "fetch_to_file",
]
