"""
Local directory stream provider.

Treats each subdirectory of a root directory as a bucket and each file below
it as an object. Useful for development, mounted volumes and tests; missing
buckets and objects raise FileNotFoundError like a real filesystem would.
"""

import logging
import mimetypes
from datetime import UTC, datetime
from pathlib import Path
from typing import BinaryIO, Iterator

from archive_core.download.models import (
    DEFAULT_CHUNK_SIZE,
    BucketAttributes,
    ObjectAttributes,
    ObjectReader,
)

logger = logging.getLogger(__name__)


def _iter_file(file: BinaryIO, chunk_size: int) -> Iterator[bytes]:
    while True:
        chunk = file.read(chunk_size)
        if not chunk:
            return
        yield chunk


class LocalDirectoryStreamProvider:
    """RemoteStreamProvider reading from root_dir/<bucket>/<key>."""

    def __init__(self, root_dir: Path):
        self.root_dir = Path(root_dir)

    def open_bucket(self, name: str) -> Path:
        bucket_dir = self.root_dir / name
        if not bucket_dir.is_dir():
            raise FileNotFoundError(f"bucket directory does not exist: {bucket_dir}")
        return bucket_dir

    def bucket_attrs(self, bucket: Path) -> BucketAttributes:
        stat = bucket.stat()
        return BucketAttributes(
            name=bucket.name,
            location=str(bucket.resolve()),
            storage_class="local",
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
        )

    def _object_path(self, bucket: Path, key: str) -> Path:
        path = (bucket / key).resolve()
        if not path.is_relative_to(bucket.resolve()):
            raise PermissionError(f"object key escapes bucket directory: {key!r}")
        return path

    def object_attrs(self, bucket: Path, key: str, timeout: float) -> ObjectAttributes:
        path = self._object_path(bucket, key)
        stat = path.stat()
        content_type, content_encoding = mimetypes.guess_type(path.name)
        return ObjectAttributes(
            bucket=bucket.name,
            key=key,
            size=stat.st_size,
            content_type=content_type,
            content_encoding=content_encoding,
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
        )

    def open_object_reader(
        self,
        bucket: Path,
        key: str,
        timeout: float,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> ObjectReader:
        path = self._object_path(bucket, key)
        size = path.stat().st_size
        content_type, content_encoding = mimetypes.guess_type(path.name)
        file = open(path, "rb")

        logger.debug(
            "Opened local object",
            extra={"bucket": bucket.name, "key": key, "blob_size": size},
        )
        return ObjectReader(
            bucket=bucket.name,
            key=key,
            chunks=_iter_file(file, chunk_size),
            size=size,
            content_type=content_type,
            content_encoding=content_encoding,
            release=file.close,
        )


__all__ = ["LocalDirectoryStreamProvider"]
