"""Transport security helpers."""

from archive_core.security.ssl_utils import get_ca_bundle_kwargs

__all__ = ["get_ca_bundle_kwargs"]
