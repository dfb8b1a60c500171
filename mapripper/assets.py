"""Static asset extraction from page markup."""

from __future__ import annotations

import logging
from typing import List

from bs4 import BeautifulSoup

from .models import ExtractedAssets

logger = logging.getLogger("mapripper")

SCRIPT_EXTENSION = ".js"
STYLESHEET_EXTENSION = ".css"


def _collect(soup: BeautifulSoup, tag: str, attribute: str, extension: str) -> List[str]:
    """Return attribute values of ``tag`` elements that end with ``extension``."""
    values: List[str] = []
    for element in soup.find_all(tag, attrs={attribute: True}):
        value = element.get(attribute)
        if isinstance(value, list):
            value = " ".join(value)
        if not value:
            continue
        value = value.strip()
        if value.endswith(extension):
            values.append(value)
    return values


def extract_assets(html: str) -> ExtractedAssets:
    """Find script and stylesheet references in ``html``.

    Uses the permissive ``html.parser`` tree builder, so malformed markup is
    recovered rather than rejected. Only ``<script src>`` values ending in
    ``.js`` and ``<link href>`` values ending in ``.css`` are kept.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    scripts = _collect(soup, "script", "src", SCRIPT_EXTENSION)
    stylesheets = _collect(soup, "link", "href", STYLESHEET_EXTENSION)

    if not scripts:
        logger.info("No script assets found")
    if not stylesheets:
        logger.info("No stylesheet assets found")
    logger.debug(
        "Extracted %d script(s) and %d stylesheet(s)", len(scripts), len(stylesheets)
    )
    return ExtractedAssets(scripts=scripts, stylesheets=stylesheets)
