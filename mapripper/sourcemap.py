"""Fetching and decoding of source map documents."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, List, Optional, Tuple
from urllib.parse import unquote

from .config import RunConfig
from .errors import MapDecodeError, MapRipperError
from .models import ItemOutcome, SourceEntry, SourceMapDocument, SourceMapReference
from .transport import Fetcher, run_concurrently

logger = logging.getLogger("mapripper")

# Servers may guard JSON against XSSI with this prefix line.
XSSI_PREFIX = ")]}'"


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def decode_source_map(url: str, body: str) -> SourceMapDocument:
    """Parse a source map body and pair ``sources`` with ``sourcesContent``."""
    text = body.lstrip("\ufeff")
    if text.startswith(XSSI_PREFIX):
        text = text.split("\n", 1)[1] if "\n" in text else ""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        hint = ""
        if text.lstrip().startswith("<"):
            hint = " (received HTML, possibly an error or login page)"
        raise MapDecodeError(
            url, f"invalid JSON: {exc.msg} at line {exc.lineno} column {exc.colno}{hint}"
        ) from exc

    if not isinstance(payload, dict):
        raise MapDecodeError(url, f"expected a JSON object, got {type(payload).__name__}")

    sources = payload.get("sources")
    if sources is None:
        logger.warning("Source map %s has no 'sources' field; treating it as empty", url)
        sources = []
    if not isinstance(sources, list):
        raise MapDecodeError(url, "'sources' is not a list")

    contents = payload.get("sourcesContent")
    if not isinstance(contents, list):
        if contents is not None:
            logger.warning("Source map %s has a malformed 'sourcesContent'; ignoring it", url)
        contents = []

    entries: List[SourceEntry] = []
    for index, source in enumerate(sources):
        if not isinstance(source, str):
            raise MapDecodeError(url, f"sources[{index}] is not a string")
        content = contents[index] if index < len(contents) else None
        entries.append(SourceEntry(path=source, content=_optional_str(content)))

    version = payload.get("version")
    return SourceMapDocument(
        url=url,
        entries=entries,
        version=version if isinstance(version, int) else None,
        file=_optional_str(payload.get("file")),
        source_root=_optional_str(payload.get("sourceRoot")),
    )


def decode_data_uri(uri: str) -> str:
    """Return the text carried by an inline ``data:`` source map."""
    header, sep, data = uri.partition(",")
    if not sep:
        raise MapDecodeError(uri[:64], "data URI has no payload")
    if ";base64" in header:
        try:
            raw = base64.b64decode(data, validate=False)
        except (binascii.Error, ValueError) as exc:
            raise MapDecodeError(uri[:64], f"invalid base64 payload: {exc}") from exc
        return raw.decode("utf-8", errors="replace")
    return unquote(data)


def fetch_source_map(fetcher: Fetcher, ref: SourceMapReference) -> SourceMapDocument:
    """Retrieve one map (or decode it inline) and parse it."""
    if ref.map_url.startswith("data:"):
        logger.debug("Decoding inline source map for %s", ref.asset_url)
        return decode_source_map(ref.asset_url, decode_data_uri(ref.map_url))
    response = fetcher.fetch(ref.map_url)
    document = decode_source_map(ref.map_url, response.body)
    logger.info("Decoded %s (%d sources)", ref.map_url, len(document.entries))
    return document


async def fetch_source_maps(
    fetcher: Fetcher,
    refs: List[SourceMapReference],
    config: RunConfig,
) -> Tuple[List[SourceMapDocument], List[ItemOutcome]]:
    """Fetch and decode every referenced map; documents keep the input order."""
    results = await run_concurrently(
        lambda ref: fetch_source_map(fetcher, ref),
        refs,
        max_workers=config.max_workers,
        return_exceptions=config.keep_going,
    )

    documents: List[SourceMapDocument] = []
    failures: List[ItemOutcome] = []
    for ref, result in zip(refs, results):
        if isinstance(result, MapRipperError):
            logger.error("Skipping source map %s: %s", ref.map_url, result)
            failures.append(ItemOutcome("map", ref.map_url, str(result)))
        elif isinstance(result, BaseException):
            raise result
        else:
            documents.append(result)
    return documents, failures
