"""In-memory stream provider with fault injection, for tests and local runs."""

from typing import Iterator

from archive_core.download.models import (
    DEFAULT_CHUNK_SIZE,
    BucketAttributes,
    ObjectAttributes,
    ObjectReader,
)


class InMemoryStreamProvider:
    """
    RemoteStreamProvider over a dict of {bucket: {key: bytes}}.

    Missing buckets and objects raise KeyError.

    Fault injection:
        fail_after_chunks: raise ConnectionResetError after yielding N chunks
        truncate_after_chunks: end the stream silently after N chunks while
            still reporting the full object size
        open_error: raise this exception from open_object_reader()

    Every reader handed out is kept in `readers` so tests can assert it was closed.
    """

    def __init__(
        self,
        objects: dict[str, dict[str, bytes]] | None = None,
        content_type: str | None = "application/octet-stream",
        fail_after_chunks: int | None = None,
        truncate_after_chunks: int | None = None,
        open_error: Exception | None = None,
    ):
        self.objects = objects if objects is not None else {}
        self.content_type = content_type
        self.fail_after_chunks = fail_after_chunks
        self.truncate_after_chunks = truncate_after_chunks
        self.open_error = open_error
        self.readers: list[ObjectReader] = []

    def put(self, bucket: str, key: str, data: bytes) -> None:
        self.objects.setdefault(bucket, {})[key] = data

    def open_bucket(self, name: str) -> str:
        if name not in self.objects:
            raise KeyError(f"bucket not found: {name}")
        return name

    def bucket_attrs(self, bucket: str) -> BucketAttributes:
        return BucketAttributes(name=bucket, location="memory", storage_class="memory")

    def _get(self, bucket: str, key: str) -> bytes:
        try:
            return self.objects[bucket][key]
        except KeyError:
            raise KeyError(f"object not found: {bucket}/{key}") from None

    def object_attrs(self, bucket: str, key: str, timeout: float) -> ObjectAttributes:
        data = self._get(bucket, key)
        return ObjectAttributes(
            bucket=bucket, key=key, size=len(data), content_type=self.content_type
        )

    def _iter_chunks(self, data: bytes, chunk_size: int) -> Iterator[bytes]:
        for index, start in enumerate(range(0, len(data), chunk_size)):
            if self.fail_after_chunks is not None and index >= self.fail_after_chunks:
                raise ConnectionResetError("connection reset by peer")
            if self.truncate_after_chunks is not None and index >= self.truncate_after_chunks:
                return
            yield data[start : start + chunk_size]

    def open_object_reader(
        self,
        bucket: str,
        key: str,
        timeout: float,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> ObjectReader:
        if self.open_error is not None:
            raise self.open_error
        data = self._get(bucket, key)

        reader = ObjectReader(
            bucket=bucket,
            key=key,
            chunks=self._iter_chunks(data, chunk_size),
            size=len(data),
            content_type=self.content_type,
        )
        self.readers.append(reader)
        return reader


__all__ = ["InMemoryStreamProvider"]
