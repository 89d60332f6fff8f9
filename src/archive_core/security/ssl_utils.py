"""SSL/TLS utilities for corporate proxy environments."""

import os

CA_BUNDLE_ENV_VARS = ("SSL_CERT_FILE", "REQUESTS_CA_BUNDLE", "CURL_CA_BUNDLE")


def get_ca_bundle_path() -> str | None:
    """Return the first custom CA bundle configured in the environment."""
    for name in CA_BUNDLE_ENV_VARS:
        value = os.getenv(name)
        if value:
            return value
    return None


def get_ca_bundle_kwargs() -> dict:
    """Return ``{"connection_verify": path}`` if a custom CA bundle is set, else ``{}``."""
    ca_bundle = get_ca_bundle_path()
    if ca_bundle:
        return {"connection_verify": ca_bundle}
    return {}
