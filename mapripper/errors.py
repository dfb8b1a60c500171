"""Exception types raised by the discovery and reconstruction pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class MapRipperError(Exception):
    """Base class for every failure the pipeline reports to its caller."""


class InvalidURLError(MapRipperError):
    """The entry URL could not be parsed as an absolute http(s) URL."""

    def __init__(self, url: str, reason: str = "not an absolute http(s) URL") -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid URL {url!r}: {reason}")


class URLResolutionError(MapRipperError):
    """An asset reference did not resolve to a usable absolute URL."""

    def __init__(self, base_url: str, raw_path: str, reason: str) -> None:
        self.base_url = base_url
        self.raw_path = raw_path
        self.reason = reason
        super().__init__(
            f"Could not resolve asset {raw_path!r} against {base_url}: {reason}"
        )


class AssetFetchError(MapRipperError):
    """A page, asset or map request failed or returned a non-success status."""

    def __init__(self, url: str, status: Optional[int] = None, reason: str = "") -> None:
        self.url = url
        self.status = status
        self.reason = reason
        if status is None:
            message = f"Failed to fetch {url}: {reason or 'transport error'}"
        else:
            message = f"Failed to fetch {url}: HTTP {status}"
            if reason:
                message += f" {reason}"
        super().__init__(message)


class MapDecodeError(MapRipperError):
    """A source map body could not be decoded.

    Usually the server answered with an HTML error or login page instead of
    JSON, so the message names the URL to make auth walls easy to spot.
    """

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Could not decode source map {url}: {reason}")


class FilesystemError(MapRipperError):
    """Creating a directory or writing a reconstructed file failed."""

    def __init__(self, path: Union[str, Path], reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Filesystem error at {self.path}: {reason}")


class InvalidInputError(MapRipperError, TypeError):
    """A value of the wrong type was handed to a pure helper."""
