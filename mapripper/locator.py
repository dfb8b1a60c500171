"""Resolve assets, probe them for a source-map marker and derive map URLs."""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple
from urllib.parse import urljoin, urlparse

from .config import RunConfig
from .errors import MapRipperError, URLResolutionError
from .models import AssetReference, ExtractedAssets, ItemOutcome, SourceMapReference
from .transport import Fetcher, run_concurrently

logger = logging.getLogger("mapripper")

MARKER = "sourceMappingURL="
MAP_SUFFIX = ".map"
MARKER_PATTERN = re.compile(r"[#@]\s*sourceMappingURL=\s*(?P<value>[^\s'\"*]+)")


def resolve_asset_url(base_url: str, raw_path: str) -> str:
    """Resolve ``raw_path`` against the page URL into an absolute http(s) URL."""
    try:
        resolved = urljoin(base_url, raw_path.strip())
        parsed = urlparse(resolved)
    except ValueError as exc:
        raise URLResolutionError(base_url, raw_path, str(exc)) from exc
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise URLResolutionError(base_url, raw_path, f"resolved to {resolved!r}")
    return resolved


def find_marker_value(body: str) -> Optional[str]:
    """Return the argument of the last ``sourceMappingURL=`` comment, if any."""
    value = None
    for match in MARKER_PATTERN.finditer(body):
        value = match.group("value")
    return value


def derive_map_url(asset_url: str, body: str, policy: str = "append") -> Optional[str]:
    """Work out where the asset's source map lives, or ``None`` without a marker.

    The ``append`` policy always answers ``asset_url + ".map"``. The
    ``marker`` policy follows the comment's own value, relative to the asset,
    and passes ``data:`` URIs through untouched.
    """
    if MARKER not in body:
        return None
    if policy == "append":
        return asset_url + MAP_SUFFIX
    value = find_marker_value(body)
    if not value:
        logger.debug("Marker in %s has no readable value; appending %s", asset_url, MAP_SUFFIX)
        return asset_url + MAP_SUFFIX
    if value.startswith("data:"):
        return value
    return urljoin(asset_url, value)


def probe(
    fetcher: Fetcher,
    base_url: str,
    raw_path: str,
    policy: str = "append",
) -> Optional[SourceMapReference]:
    """Fetch one asset and return its source-map reference, if it has one."""
    asset_url = resolve_asset_url(base_url, raw_path)
    response = fetcher.fetch(asset_url)
    map_url = derive_map_url(asset_url, response.body, policy)
    if map_url is None:
        logger.debug("No source map marker in %s", asset_url)
        return None
    logger.info("Source map marker found in %s", asset_url)
    return SourceMapReference(asset_url=asset_url, map_url=map_url)


async def locate_source_maps(
    fetcher: Fetcher,
    base_url: str,
    assets: ExtractedAssets,
    config: RunConfig,
) -> Tuple[List[SourceMapReference], List[ItemOutcome]]:
    """Probe every extracted asset concurrently.

    References are returned in extraction order (scripts, then stylesheets).
    Failures abort the run unless ``config.keep_going`` is set, in which case
    they are returned as outcomes next to the references that did succeed.
    """
    references: List[AssetReference] = assets.references()

    def _probe(ref: AssetReference) -> Optional[SourceMapReference]:
        return probe(fetcher, base_url, ref.raw_path, config.map_url_policy)

    results = await run_concurrently(
        _probe,
        references,
        max_workers=config.max_workers,
        return_exceptions=config.keep_going,
    )

    found: List[SourceMapReference] = []
    failures: List[ItemOutcome] = []
    for ref, result in zip(references, results):
        if isinstance(result, MapRipperError):
            logger.error("Skipping %s asset %s: %s", ref.kind.value, ref.raw_path, result)
            failures.append(ItemOutcome("asset", ref.raw_path, str(result)))
        elif isinstance(result, BaseException):
            raise result
        elif result is not None:
            found.append(result)

    if not found:
        logger.info("No source maps found")
    return found, failures
