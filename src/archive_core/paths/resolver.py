"""
Store URI resolution.

Turns a store URI into the coordinates the download core works with:

    gs://pow-play-cms/path/to/archive.tar.gz
      scheme    = "gs"
      bucket    = "pow-play-cms"
      key       = "path/to/archive.tar.gz"
      file_name = "archive.tar.gz"

The file name is the last path segment of the key and doubles as the name of
the local temp file, so a key ending in "/" (a prefix, not an object) is
rejected.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from archive_core.errors.exceptions import MalformedURIError

# scheme://bucket/key; bucket excludes "/", key is everything after it
STORE_URI_PATTERN = re.compile(
    r"^(?P<scheme>[A-Za-z][A-Za-z0-9+.\-]*)://(?P<bucket>[^/]*)/(?P<key>.*)$",
    re.DOTALL,
)


@dataclass(frozen=True)
class StoreLocation:
    """
    Parsed coordinates of one remote object.

    Attributes:
        uri: Original URI string
        scheme: URI scheme (e.g. "gs", "az")
        bucket: Bucket (container) name, never empty
        key: Object key, never empty, may contain "/"
        file_name: Last path segment of the key
    """

    uri: str
    scheme: str
    bucket: str
    key: str
    file_name: str

    def __str__(self) -> str:
        return f"{self.scheme}://{self.bucket}/{self.key}"


def resolve_store_uri(
    uri: str,
    allowed_schemes: Optional[Iterable[str]] = None,
) -> StoreLocation:
    """
    Parse a store URI into a StoreLocation.

    Args:
        uri: URI of the form scheme://bucket/key
        allowed_schemes: Optional set of accepted schemes (case-insensitive).
            None accepts any scheme.

    Returns:
        StoreLocation with non-empty bucket, key and file name

    Raises:
        MalformedURIError: If the URI does not match the pattern, the bucket
            or key is empty, the key names a prefix, or the scheme is not allowed

    Examples:
        >>> resolve_store_uri("gs://b1/x/y/z.tar.gz").file_name
        'z.tar.gz'
        >>> resolve_store_uri("gs://b1/z.tar.gz").key
        'z.tar.gz'
    """
    if not isinstance(uri, str):
        raise MalformedURIError(repr(uri), "uri must be a string")

    match = STORE_URI_PATTERN.match(uri)
    if match is None:
        raise MalformedURIError(uri, "expected scheme://bucket/key")

    scheme = match.group("scheme")
    bucket = match.group("bucket")
    key = match.group("key")

    if not bucket:
        raise MalformedURIError(uri, "bucket name is empty")
    if not key:
        raise MalformedURIError(uri, "object key is empty")

    if allowed_schemes is not None:
        allowed = {s.lower() for s in allowed_schemes}
        if scheme.lower() not in allowed:
            raise MalformedURIError(
                uri, f"scheme {scheme!r} not in {sorted(allowed)}"
            )

    file_name = key.rsplit("/", 1)[-1]
    if not file_name or file_name in (".", ".."):
        raise MalformedURIError(uri, "object key does not name a file")

    return StoreLocation(
        uri=uri,
        scheme=scheme,
        bucket=bucket,
        key=key,
        file_name=file_name,
    )


__all__ = ["STORE_URI_PATTERN", "StoreLocation", "resolve_store_uri"]
