"""Tests for CA bundle discovery."""

import pytest

from archive_core.security.ssl_utils import (
    CA_BUNDLE_ENV_VARS,
    get_ca_bundle_kwargs,
    get_ca_bundle_path,
)


@pytest.fixture(autouse=True)
def clear_ca_env(monkeypatch):
    for name in CA_BUNDLE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_no_bundle_configured():
    assert get_ca_bundle_path() is None
    assert get_ca_bundle_kwargs() == {}


def test_ssl_cert_file_takes_priority(monkeypatch):
    monkeypatch.setenv("SSL_CERT_FILE", "/certs/a.pem")
    monkeypatch.setenv("REQUESTS_CA_BUNDLE", "/certs/b.pem")

    assert get_ca_bundle_kwargs() == {"connection_verify": "/certs/a.pem"}


def test_falls_back_to_curl_bundle(monkeypatch):
    monkeypatch.setenv("CURL_CA_BUNDLE", "/certs/c.pem")

    assert get_ca_bundle_path() == "/certs/c.pem"
