"""
Store adapters implementing RemoteStreamProvider.

    - AzureBlobStreamProvider: Azure Blob Storage (container = bucket)
    - LocalDirectoryStreamProvider: subdirectories of a root directory
    - InMemoryStreamProvider: dict-backed, with fault injection
"""

from archive_fetch.storage.blob import AzureBlobStreamProvider
from archive_fetch.storage.local import LocalDirectoryStreamProvider
from archive_fetch.storage.memory import InMemoryStreamProvider

__all__ = [
    "AzureBlobStreamProvider",
    "LocalDirectoryStreamProvider",
    "InMemoryStreamProvider",
]
