"""Shared fixtures: a scripted registry HTTP client and an isolated data dir."""

import pytest

from common.errors import RegistryRejectionError
from constants import Constants


class FakeHttp:
    """Stands in for AsyncHttpClient.

    ``routes`` maps a URL (or the URL without its query string) to a JSON
    body, an exception to raise, or a callable taking the full URL.
    Unknown URLs answer 404.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    async def get_json(self, url, *, registry, headers=None):
        self.calls.append((url, headers))
        target = url if url in self.routes else url.split("?", 1)[0]
        if target not in self.routes:
            raise RegistryRejectionError(registry, 404, url, "not found")
        body = self.routes[target]
        if isinstance(body, Exception):
            raise body
        if callable(body):
            return body(url)
        return body


@pytest.fixture
def fake_http():
    return FakeHttp


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Point caches and the version index at a temporary directory."""
    path = tmp_path / "data"
    monkeypatch.setattr(Constants, "DATA_DIR", str(path))
    return path
