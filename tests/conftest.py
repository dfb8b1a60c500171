from __future__ import annotations

import threading
from typing import Dict, List, Tuple, Union

import pytest

from mapripper.errors import AssetFetchError
from mapripper.transport import FetchResponse

Route = Union[str, Tuple[int, str]]


class FakeFetcher:
    """In-memory fetcher serving canned bodies keyed by absolute URL."""

    def __init__(self, routes: Dict[str, Route]) -> None:
        self.routes = dict(routes)
        self.requested: List[str] = []
        self.closed = False
        self._lock = threading.Lock()

    def fetch(self, url: str) -> FetchResponse:
        with self._lock:
            self.requested.append(url)
        route = self.routes.get(url)
        if route is None:
            raise AssetFetchError(url, status=404, reason="Not Found")
        status, body = (200, route) if isinstance(route, str) else route
        if not 200 <= status < 300:
            raise AssetFetchError(url, status=status)
        return FetchResponse(url=url, status=status, headers={}, body=body)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_fetcher():
    """Build a ``FakeFetcher`` from a URL -> body (or (status, body)) mapping."""
    return FakeFetcher
