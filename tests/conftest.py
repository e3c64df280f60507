"""Shared fixtures for the mirror tests."""

from collections import Counter
from typing import Dict

import pytest

from site_mirror.config import MirrorConfig
from site_mirror.errors import FetchError
from site_mirror.fetch import AssetCache


class FakeFetcher:
    """Serves canned responses and counts every request."""

    def __init__(self, responses: Dict[str, bytes]):
        self.responses = dict(responses)
        self.calls = Counter()

    def fetch(self, url: str) -> bytes:
        self.calls[url] += 1
        if url not in self.responses:
            raise FetchError(url, "404 Not Found")
        return self.responses[url]


@pytest.fixture
def config(tmp_path):
    return MirrorConfig(entry_url="https://example.com/", output_root=tmp_path / "site")


@pytest.fixture
def fetcher():
    return FakeFetcher({})


@pytest.fixture
def cache(fetcher):
    return AssetCache(fetcher)
