"""
Path resolution module.

Provides parsing of store URIs into bucket/key coordinates:
    - StoreLocation: immutable parsed coordinates
    - resolve_store_uri(): scheme://bucket/key -> StoreLocation
"""

from archive_core.paths.resolver import StoreLocation, resolve_store_uri

__all__ = [
    "StoreLocation",
    "resolve_store_uri",
]
