"""Tests for archive_fetch.storage.local module."""

from datetime import datetime

import pytest

from archive_fetch.storage.local import LocalDirectoryStreamProvider


@pytest.fixture
def store_root(tmp_path):
    root = tmp_path / "store"
    (root / "b1" / "x" / "y").mkdir(parents=True)
    (root / "b1" / "x" / "y" / "z.tar.gz").write_bytes(b"hello world!")
    (root / "outside.txt").write_bytes(b"secret")
    return root


class TestOpenBucket:
    def test_existing_bucket(self, store_root):
        provider = LocalDirectoryStreamProvider(store_root)

        assert provider.open_bucket("b1") == store_root / "b1"

    def test_missing_bucket(self, store_root):
        provider = LocalDirectoryStreamProvider(store_root)

        with pytest.raises(FileNotFoundError, match="bucket directory does not exist"):
            provider.open_bucket("nope")

    def test_file_is_not_a_bucket(self, store_root):
        provider = LocalDirectoryStreamProvider(store_root)

        with pytest.raises(FileNotFoundError):
            provider.open_bucket("outside.txt")


class TestBucketAttrs:
    def test_reports_directory_metadata(self, store_root):
        provider = LocalDirectoryStreamProvider(store_root)

        attrs = provider.bucket_attrs(provider.open_bucket("b1"))

        assert attrs.name == "b1"
        assert attrs.location == str((store_root / "b1").resolve())
        assert attrs.storage_class == "local"
        assert isinstance(attrs.last_modified, datetime)
        assert attrs.last_modified.tzinfo is not None
        assert attrs.created_at is None


class TestObjectAttrs:
    def test_reports_file_metadata(self, store_root):
        provider = LocalDirectoryStreamProvider(store_root)
        bucket = provider.open_bucket("b1")

        attrs = provider.object_attrs(bucket, "x/y/z.tar.gz", timeout=10)

        assert attrs.bucket == "b1"
        assert attrs.key == "x/y/z.tar.gz"
        assert attrs.size == 12
        assert attrs.content_type == "application/x-tar"
        assert attrs.content_encoding == "gzip"
        assert attrs.last_modified.tzinfo is not None

    def test_missing_object(self, store_root):
        provider = LocalDirectoryStreamProvider(store_root)

        with pytest.raises(FileNotFoundError):
            provider.object_attrs(provider.open_bucket("b1"), "nope.tgz", timeout=10)

    def test_key_escaping_bucket_rejected(self, store_root):
        provider = LocalDirectoryStreamProvider(store_root)

        with pytest.raises(PermissionError):
            provider.object_attrs(provider.open_bucket("b1"), "../outside.txt", timeout=10)


class TestOpenObjectReader:
    def test_streams_file_in_chunks(self, store_root):
        provider = LocalDirectoryStreamProvider(store_root)
        bucket = provider.open_bucket("b1")

        with provider.open_object_reader(bucket, "x/y/z.tar.gz", timeout=10, chunk_size=5) as reader:
            chunks = list(reader)

        assert chunks == [b"hello", b" worl", b"d!"]
        assert reader.size == 12
        assert reader.bucket == "b1"
        assert reader.key == "x/y/z.tar.gz"

    def test_guesses_content_type(self, store_root):
        provider = LocalDirectoryStreamProvider(store_root)
        bucket = provider.open_bucket("b1")

        reader = provider.open_object_reader(bucket, "x/y/z.tar.gz", timeout=10)
        reader.close()

        assert reader.content_type == "application/x-tar"
        assert reader.content_encoding == "gzip"

    def test_missing_object(self, store_root):
        provider = LocalDirectoryStreamProvider(store_root)
        bucket = provider.open_bucket("b1")

        with pytest.raises(FileNotFoundError):
            provider.open_object_reader(bucket, "x/missing.tgz", timeout=10)

    def test_key_escaping_bucket_rejected(self, store_root):
        provider = LocalDirectoryStreamProvider(store_root)
        bucket = provider.open_bucket("b1")

        with pytest.raises(PermissionError, match="escapes bucket"):
            provider.open_object_reader(bucket, "../outside.txt", timeout=10)

    def test_close_releases_file_handle(self, store_root):
        provider = LocalDirectoryStreamProvider(store_root)
        bucket = provider.open_bucket("b1")
        reader = provider.open_object_reader(bucket, "x/y/z.tar.gz", timeout=10, chunk_size=1)
        file = reader.release.__self__

        next(iter(reader))
        reader.close()

        assert file.closed
        assert reader.closed
