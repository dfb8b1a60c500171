"""High-level orchestration: page -> assets -> source maps -> file tree."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Optional
from urllib.parse import urlparse

from .assets import extract_assets
from .config import RunConfig
from .errors import InvalidURLError, MapRipperError
from .locator import locate_source_maps
from .models import ItemOutcome, RunSummary
from .reconstruct import reconstruct
from .sourcemap import fetch_source_maps
from .transport import Fetcher, HttpFetcher

logger = logging.getLogger("mapripper")


def validate_entry_url(url: str) -> str:
    """Return ``url`` stripped, or raise ``InvalidURLError``."""
    candidate = (url or "").strip()
    try:
        parsed = urlparse(candidate)
    except ValueError as exc:
        raise InvalidURLError(url, str(exc)) from exc
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidURLError(url)
    return candidate


async def run_pipeline(
    config: RunConfig,
    fetcher: Optional[Fetcher] = None,
    *,
    write: bool = True,
) -> RunSummary:
    """Discover source maps for ``config.entry_url`` and optionally rebuild them.

    Stages run one after another; items inside a stage are fetched
    concurrently. With ``write=False`` only discovery happens (inspection).
    """
    overall_start = time.perf_counter()
    entry_url = validate_entry_url(config.entry_url)
    if fetcher is None:
        http_fetcher = HttpFetcher.from_config(config)
        try:
            return await run_pipeline(config, http_fetcher, write=write)
        finally:
            http_fetcher.close()

    summary = RunSummary(entry_url=entry_url)

    logger.info("Loading %s", entry_url)
    page = await asyncio.to_thread(fetcher.fetch, entry_url)
    base_url = page.url or entry_url

    assets = extract_assets(page.body)
    summary.assets = assets.references()
    if not summary.assets:
        logger.info("No assets found on %s", base_url)
        summary.total_seconds = time.perf_counter() - overall_start
        return summary

    summary.map_refs, failures = await locate_source_maps(fetcher, base_url, assets, config)
    summary.failures.extend(failures)

    if write and summary.map_refs:
        summary.documents, failures = await fetch_source_maps(
            fetcher, summary.map_refs, config
        )
        summary.failures.extend(failures)
        summary.files_written = _reconstruct_all(summary, config)

    summary.total_seconds = time.perf_counter() - overall_start
    return summary


def _reconstruct_all(summary: RunSummary, config: RunConfig) -> int:
    """Rebuild every decoded map; one map failing does not stop the others."""
    written = 0
    errors: List[MapRipperError] = []
    for document in summary.documents:
        try:
            written += reconstruct(document, config.output_root)
        except MapRipperError as exc:
            logger.error("Reconstruction of %s failed: %s", document.url, exc)
            summary.failures.append(ItemOutcome("reconstruct", document.url, str(exc)))
            errors.append(exc)
    if errors and not config.keep_going:
        raise errors[0]
    return written
