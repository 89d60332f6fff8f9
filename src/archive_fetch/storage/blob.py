"""
Azure Blob Storage stream provider.

Maps store coordinates onto Blob Storage: bucket = container, key = blob
name. Blobs are streamed with StorageStreamDownloader.read(chunk_size), and
every ranged GET is capped at the provider chunk size, so only one chunk is
in memory at a time.

Authentication:
    - connection_string when given (local dev, Azurite)
    - otherwise account_url + DefaultAzureCredential (managed identity, CLI, SPN env vars)
"""

import asyncio
import contextlib
import logging
import math
from typing import Any, Iterator

import requests
from azure.core.pipeline.transport import RequestsTransport
from azure.identity import DefaultAzureCredential
from azure.storage.blob import BlobServiceClient, ContainerClient, StorageStreamDownloader

from archive_core.download.models import (
    DEFAULT_CHUNK_SIZE,
    BucketAttributes,
    ObjectAttributes,
    ObjectReader,
)
from archive_core.security.ssl_utils import get_ca_bundle_kwargs

logger = logging.getLogger(__name__)

# Connection timeout (5 minutes for slow networks and large archives)
CONNECTION_TIMEOUT = 300.0
READ_TIMEOUT = 300.0


def _iter_downloader(downloader: StorageStreamDownloader, chunk_size: int) -> Iterator[bytes]:
    while True:
        chunk = downloader.read(chunk_size)
        if not chunk:
            return
        yield chunk


def _request_timeouts(timeout: float) -> dict:
    # Server-side timeout is whole seconds; the transport ones bound each socket wait
    return {
        "timeout": max(1, math.ceil(timeout)),
        "connection_timeout": timeout,
        "read_timeout": timeout,
    }


class AzureBlobStreamProvider:
    """
    RemoteStreamProvider backed by azure-storage-blob.

    The service client is created lazily on first use and shared across
    fetches; call close() (or use as a context manager) to release the
    HTTP session and credential.

    chunk_size caps every ranged GET (max_single_get_size and
    max_chunk_get_size), so the SDK never holds more than one chunk of an
    object in memory. connection_timeout and read_timeout are the transport
    defaults; each object request overrides them with its own timeout.
    """

    def __init__(
        self,
        account_url: str | None = None,
        connection_string: str | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        connection_timeout: float = CONNECTION_TIMEOUT,
        read_timeout: float = READ_TIMEOUT,
    ):
        if not account_url and not connection_string:
            raise ValueError("Either account_url or connection_string is required")

        self.account_url = account_url
        self._connection_string = connection_string
        self._chunk_size = chunk_size
        self._connection_timeout = connection_timeout
        self._read_timeout = read_timeout

        self._service_client: BlobServiceClient | None = None
        self._session: requests.Session | None = None
        self._credential: Any | None = None
        self._account_info: dict | None = None

    def _create_client(self) -> None:
        session = requests.Session()
        transport = RequestsTransport(session=session, session_owner=False)

        client_kwargs = {
            "transport": transport,
            "connection_timeout": self._connection_timeout,
            "read_timeout": self._read_timeout,
            "max_single_get_size": self._chunk_size,
            "max_chunk_get_size": self._chunk_size,
            **get_ca_bundle_kwargs(),
        }

        if self._connection_string:
            self._service_client = BlobServiceClient.from_connection_string(
                self._connection_string, **client_kwargs
            )
            auth_mode = "connection_string"
        else:
            self._credential = DefaultAzureCredential()
            self._service_client = BlobServiceClient(
                account_url=self.account_url,
                credential=self._credential,
                **client_kwargs,
            )
            auth_mode = "default_credential"

        self._session = session
        logger.debug(
            "Created blob service client",
            extra={
                "account_url": self.account_url or self._service_client.url,
                "operation": auth_mode,
                "chunk_size": self._chunk_size,
            },
        )

    def _ensure_client(self) -> BlobServiceClient:
        if self._service_client is None:
            self._create_client()
        return self._service_client

    def open_bucket(self, name: str) -> ContainerClient:
        return self._ensure_client().get_container_client(name)

    def bucket_attrs(self, bucket: ContainerClient) -> BucketAttributes:
        """
        Read container properties plus account SKU.

        Blob containers have no creation timestamp or storage class of their
        own; the account SKU stands in for the storage class and the account
        host for the location.
        """
        props = bucket.get_container_properties()
        if self._account_info is None:
            self._account_info = self._ensure_client().get_account_information()

        return BucketAttributes(
            name=props.name,
            location=bucket.primary_hostname,
            storage_class=self._account_info.get("sku_name"),
            last_modified=props.last_modified,
        )

    def object_attrs(self, bucket: ContainerClient, key: str, timeout: float) -> ObjectAttributes:
        props = bucket.get_blob_client(key).get_blob_properties(**_request_timeouts(timeout))
        return ObjectAttributes(
            bucket=bucket.container_name,
            key=key,
            size=props.size,
            content_type=props.content_settings.content_type,
            content_encoding=props.content_settings.content_encoding,
            last_modified=props.last_modified,
        )

    def open_object_reader(
        self,
        bucket: ContainerClient,
        key: str,
        timeout: float,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> ObjectReader:
        blob_client = bucket.get_blob_client(key)
        # The timeouts are kept as request options for every later range GET
        downloader = blob_client.download_blob(max_concurrency=1, **_request_timeouts(timeout))

        content_settings = downloader.properties.content_settings
        return ObjectReader(
            bucket=bucket.container_name,
            key=key,
            chunks=_iter_downloader(downloader, chunk_size),
            size=downloader.size,
            content_type=content_settings.content_type,
            content_encoding=content_settings.content_encoding,
        )

    def close(self) -> None:
        if self._service_client is not None:
            try:
                self._service_client.close()
                logger.debug("Closed blob service client")
            except Exception:
                logger.warning("Error closing blob service client", exc_info=True)
        if self._session is not None:
            with contextlib.suppress(Exception):
                self._session.close()
            self._session = None
        if self._credential is not None:
            with contextlib.suppress(Exception):
                self._credential.close()
            self._credential = None
        self._service_client = None
        self._account_info = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await asyncio.to_thread(self.close)
        return False


__all__ = ["AzureBlobStreamProvider", "CONNECTION_TIMEOUT", "READ_TIMEOUT"]
