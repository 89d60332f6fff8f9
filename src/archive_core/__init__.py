"""
Core library: store-agnostic archive download components.

Modules:
    paths       - Store URI parsing (scheme://bucket/key)
    download    - Streaming fetch into self-deleting temp files
    errors      - Download error hierarchy and classification predicates
    logging     - Structured JSON logging with correlation IDs
    security    - CA bundle discovery for store transports

Design Principles:
    - No dependency on a specific store SDK (see archive_fetch.storage)
    - Bounded memory: payloads stream to disk chunk by chunk
    - No file left behind on failure
"""

from .types import DownloadErrorKind, ErrorCategory, RemoteStreamProvider

__version__ = "0.1.0"

__all__ = [
    "DownloadErrorKind",
    "ErrorCategory",
    "RemoteStreamProvider",
]
