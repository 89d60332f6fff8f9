"""Tests for archive_fetch.storage.blob module.

Covers AzureBlobStreamProvider: client creation, bucket attributes, object
readers, and close. The Azure SDK is mocked throughout.
"""

from datetime import UTC, datetime
from unittest.mock import MagicMock, patch

import pytest

from archive_core.download.models import BucketAttributes, ObjectAttributes
from archive_fetch.storage.blob import CONNECTION_TIMEOUT, READ_TIMEOUT, AzureBlobStreamProvider

MODULE = "archive_fetch.storage.blob"


def _make_downloader(chunks, size, content_type="application/gzip", content_encoding=None):
    downloader = MagicMock()
    downloader.read.side_effect = [*chunks, b""]
    downloader.size = size
    downloader.properties.content_settings.content_type = content_type
    downloader.properties.content_settings.content_encoding = content_encoding
    return downloader


# =============================================================================
# Client creation
# =============================================================================


class TestAzureBlobStreamProviderInit:
    def test_requires_account_url_or_connection_string(self):
        with pytest.raises(ValueError, match="account_url or connection_string"):
            AzureBlobStreamProvider()

    def test_client_is_lazy(self):
        with patch(f"{MODULE}.BlobServiceClient") as MockService:
            AzureBlobStreamProvider(connection_string="conn")

        MockService.from_connection_string.assert_not_called()

    @patch(f"{MODULE}.BlobServiceClient")
    def test_connection_string_auth(self, MockService, monkeypatch):
        monkeypatch.delenv("SSL_CERT_FILE", raising=False)
        monkeypatch.delenv("REQUESTS_CA_BUNDLE", raising=False)
        monkeypatch.delenv("CURL_CA_BUNDLE", raising=False)
        provider = AzureBlobStreamProvider(connection_string="conn", chunk_size=4096)

        provider.open_bucket("archives")

        args, kwargs = MockService.from_connection_string.call_args
        assert args == ("conn",)
        assert kwargs["connection_timeout"] == CONNECTION_TIMEOUT
        assert kwargs["read_timeout"] == READ_TIMEOUT
        assert kwargs["max_single_get_size"] == 4096
        assert kwargs["max_chunk_get_size"] == 4096
        assert "transport" in kwargs
        assert "connection_verify" not in kwargs
        MockService.from_connection_string.return_value.get_container_client.assert_called_once_with(
            "archives"
        )

    @patch(f"{MODULE}.DefaultAzureCredential")
    @patch(f"{MODULE}.BlobServiceClient")
    def test_default_credential_auth(self, MockService, MockCredential):
        provider = AzureBlobStreamProvider(account_url="https://acct.blob.core.windows.net")

        provider.open_bucket("archives")

        _, kwargs = MockService.call_args
        assert kwargs["account_url"] == "https://acct.blob.core.windows.net"
        assert kwargs["credential"] is MockCredential.return_value

    @patch(f"{MODULE}.BlobServiceClient")
    def test_custom_ca_bundle(self, MockService, monkeypatch):
        monkeypatch.setenv("SSL_CERT_FILE", "/certs/corp.pem")
        provider = AzureBlobStreamProvider(connection_string="conn")

        provider.open_bucket("archives")

        _, kwargs = MockService.from_connection_string.call_args
        assert kwargs["connection_verify"] == "/certs/corp.pem"

    @patch(f"{MODULE}.BlobServiceClient")
    def test_client_reused(self, MockService):
        provider = AzureBlobStreamProvider(connection_string="conn")

        provider.open_bucket("a")
        provider.open_bucket("b")

        assert MockService.from_connection_string.call_count == 1


# =============================================================================
# bucket_attrs
# =============================================================================


class TestBucketAttrs:
    @patch(f"{MODULE}.BlobServiceClient")
    def test_maps_container_and_account_properties(self, MockService):
        service = MockService.from_connection_string.return_value
        service.get_account_information.return_value = {
            "sku_name": "Standard_LRS",
            "account_kind": "StorageV2",
        }
        container = MagicMock()
        container.primary_hostname = "acct.blob.core.windows.net"
        modified = datetime(2026, 1, 1, tzinfo=UTC)
        container.get_container_properties.return_value = MagicMock(
            last_modified=modified
        )
        container.get_container_properties.return_value.name = "archives"

        provider = AzureBlobStreamProvider(connection_string="conn")
        attrs = provider.bucket_attrs(container)

        assert attrs == BucketAttributes(
            name="archives",
            location="acct.blob.core.windows.net",
            storage_class="Standard_LRS",
            last_modified=modified,
        )

    @patch(f"{MODULE}.BlobServiceClient")
    def test_account_information_cached(self, MockService):
        service = MockService.from_connection_string.return_value
        service.get_account_information.return_value = {"sku_name": "Standard_LRS"}
        provider = AzureBlobStreamProvider(connection_string="conn")
        container = MagicMock()

        provider.bucket_attrs(container)
        provider.bucket_attrs(container)

        service.get_account_information.assert_called_once_with()


# =============================================================================
# object_attrs
# =============================================================================


class TestObjectAttrs:
    def test_reads_blob_properties_without_download(self):
        container = MagicMock()
        container.container_name = "archives"
        blob_client = container.get_blob_client.return_value
        modified = datetime(2026, 2, 3, tzinfo=UTC)
        props = blob_client.get_blob_properties.return_value
        props.size = 12
        props.content_settings.content_type = "application/gzip"
        props.content_settings.content_encoding = None
        props.last_modified = modified

        provider = AzureBlobStreamProvider(connection_string="conn")
        attrs = provider.object_attrs(container, "x/y/z.tar.gz", timeout=4)

        container.get_blob_client.assert_called_once_with("x/y/z.tar.gz")
        blob_client.get_blob_properties.assert_called_once_with(
            timeout=4, connection_timeout=4, read_timeout=4
        )
        blob_client.download_blob.assert_not_called()
        assert attrs == ObjectAttributes(
            bucket="archives",
            key="x/y/z.tar.gz",
            size=12,
            content_type="application/gzip",
            last_modified=modified,
        )

    def test_not_found_error_propagates(self):
        from azure.core.exceptions import ResourceNotFoundError

        container = MagicMock()
        container.get_blob_client.return_value.get_blob_properties.side_effect = (
            ResourceNotFoundError("The specified blob does not exist.")
        )
        provider = AzureBlobStreamProvider(connection_string="conn")

        with pytest.raises(ResourceNotFoundError):
            provider.object_attrs(container, "missing.tgz", timeout=5)


# =============================================================================
# open_object_reader
# =============================================================================


class TestOpenObjectReader:
    def test_streams_downloader_chunks(self):
        container = MagicMock()
        container.container_name = "archives"
        downloader = _make_downloader([b"hello ", b"world!"], size=12, content_encoding="gzip")
        container.get_blob_client.return_value.download_blob.return_value = downloader

        provider = AzureBlobStreamProvider(connection_string="conn")
        reader = provider.open_object_reader(container, "x/y/z.tar.gz", timeout=2.5, chunk_size=6)

        container.get_blob_client.assert_called_once_with("x/y/z.tar.gz")
        container.get_blob_client.return_value.download_blob.assert_called_once_with(
            max_concurrency=1, timeout=3, connection_timeout=2.5, read_timeout=2.5
        )
        assert reader.bucket == "archives"
        assert reader.key == "x/y/z.tar.gz"
        assert reader.size == 12
        assert reader.content_type == "application/gzip"
        assert reader.content_encoding == "gzip"
        assert list(reader) == [b"hello ", b"world!"]
        downloader.read.assert_called_with(6)

    def test_sub_second_timeout_rounds_up_server_side(self):
        container = MagicMock()
        container.get_blob_client.return_value.download_blob.return_value = _make_downloader(
            [], size=0
        )
        provider = AzureBlobStreamProvider(connection_string="conn")

        provider.open_object_reader(container, "k", timeout=0.2)

        _, kwargs = container.get_blob_client.return_value.download_blob.call_args
        assert kwargs["timeout"] == 1
        assert kwargs["read_timeout"] == 0.2

    def test_not_found_error_propagates(self):
        from azure.core.exceptions import ResourceNotFoundError

        container = MagicMock()
        container.get_blob_client.return_value.download_blob.side_effect = ResourceNotFoundError(
            "The specified blob does not exist."
        )
        provider = AzureBlobStreamProvider(connection_string="conn")

        with pytest.raises(ResourceNotFoundError):
            provider.open_object_reader(container, "missing.tgz", timeout=5)

    @patch(f"{MODULE}.BlobServiceClient")
    def test_end_to_end_with_fetcher(self, MockService, tmp_path):
        from archive_core.download.fetcher import ArchiveFetcher

        service = MockService.from_connection_string.return_value
        container = service.get_container_client.return_value
        container.container_name = "b1"
        container.get_blob_client.return_value.download_blob.return_value = _make_downloader(
            [b"hello world!"], size=12
        )

        with AzureBlobStreamProvider(connection_string="conn") as provider:
            fetcher = ArchiveFetcher(provider, tmp_dir=tmp_path)
            with fetcher.fetch("gs://b1/x/y/z.tar.gz") as archive:
                assert archive.read() == b"hello world!"

        service.get_container_client.assert_called_once_with("b1")
        service.close.assert_called_once_with()

    @patch(f"{MODULE}.BlobServiceClient")
    def test_missing_blob_classified_as_not_found(self, MockService, tmp_path):
        from azure.core.exceptions import ResourceNotFoundError

        from archive_core.download.fetcher import ArchiveFetcher
        from archive_core.errors.classifiers import is_unexpected_archive_response
        from archive_core.errors.exceptions import ArchiveNotFoundError

        service = MockService.from_connection_string.return_value
        blob_client = service.get_container_client.return_value.get_blob_client.return_value
        blob_client.download_blob.side_effect = ResourceNotFoundError("BlobNotFound")

        fetcher = ArchiveFetcher(AzureBlobStreamProvider(connection_string="conn"), tmp_dir=tmp_path)
        with pytest.raises(ArchiveNotFoundError) as exc_info:
            fetcher.fetch("gs://b1/missing.tgz")

        assert is_unexpected_archive_response(exc_info.value)
        assert list(tmp_path.iterdir()) == []


# =============================================================================
# close
# =============================================================================


class TestClose:
    @patch(f"{MODULE}.DefaultAzureCredential")
    @patch(f"{MODULE}.BlobServiceClient")
    def test_close_releases_client_and_credential(self, MockService, MockCredential):
        provider = AzureBlobStreamProvider(account_url="https://acct.blob.core.windows.net")
        provider.open_bucket("a")

        provider.close()

        MockService.return_value.close.assert_called_once_with()
        MockCredential.return_value.close.assert_called_once_with()
        assert provider._service_client is None

    def test_close_without_client_is_noop(self):
        AzureBlobStreamProvider(connection_string="conn").close()

    @patch(f"{MODULE}.BlobServiceClient")
    def test_close_error_is_logged(self, MockService, caplog):
        MockService.from_connection_string.return_value.close.side_effect = RuntimeError("boom")
        provider = AzureBlobStreamProvider(connection_string="conn")
        provider.open_bucket("a")

        provider.close()

        assert "Error closing blob service client" in caplog.text

    @pytest.mark.asyncio
    @patch(f"{MODULE}.BlobServiceClient")
    async def test_async_context_manager(self, MockService):
        async with AzureBlobStreamProvider(connection_string="conn") as provider:
            provider.open_bucket("a")

        MockService.from_connection_string.return_value.close.assert_called_once_with()
