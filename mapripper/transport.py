"""HTTP transport and concurrent fan-out helpers."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Protocol, Sequence, TypeVar

import requests

from .config import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, RunConfig
from .errors import AssetFetchError

logger = logging.getLogger("mapripper")

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class FetchResponse:
    """Successful response returned by a fetcher."""

    url: str
    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: str = ""


class Fetcher(Protocol):
    def fetch(self, url: str) -> FetchResponse:
        ...

    def close(self) -> None:
        ...


class HttpFetcher:
    """Blocking fetcher backed by a shared ``requests.Session``."""

    def __init__(
        self,
        headers: Optional[Mapping[str, str]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": user_agent})
        if headers:
            self.session.headers.update(dict(headers))

    @classmethod
    def from_config(cls, config: RunConfig) -> "HttpFetcher":
        return cls(
            headers=config.headers,
            timeout=config.timeout,
            user_agent=config.user_agent,
        )

    def fetch(self, url: str) -> FetchResponse:
        logger.debug("GET %s", url)
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise AssetFetchError(url, reason=str(exc)) from exc
        if not 200 <= resp.status_code < 300:
            raise AssetFetchError(url, status=resp.status_code, reason=resp.reason or "")
        # Source maps and bundles are UTF-8 unless the server says otherwise.
        if "charset" not in resp.headers.get("Content-Type", "").lower():
            resp.encoding = "utf-8"
        return FetchResponse(
            url=resp.url or url,
            status=resp.status_code,
            headers=dict(resp.headers),
            body=resp.text,
        )

    def close(self) -> None:
        self.session.close()


async def run_concurrently(
    func: Callable[[T], R],
    items: Sequence[T],
    *,
    max_workers: int,
    return_exceptions: bool = False,
) -> List[R]:
    """Run a blocking ``func`` over ``items`` in worker threads.

    Results come back in the order of ``items``. With ``return_exceptions``
    a failing item yields its exception instead of aborting the batch.
    """
    if not items:
        return []
    semaphore = asyncio.Semaphore(max_workers)

    async def _run(item: T) -> R:
        async with semaphore:
            return await asyncio.to_thread(func, item)

    return await asyncio.gather(
        *(_run(item) for item in items),
        return_exceptions=return_exceptions,
    )


def parse_header(value: str) -> Dict[str, str]:
    """Parse a ``Name: value`` header option into a one-item mapping."""
    name, sep, content = value.partition(":")
    if not sep or not name.strip():
        raise ValueError(f"Header must look like 'Name: value', got {value!r}")
    return {name.strip(): content.strip()}
