"""Write the original files listed by a source map under an output root."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from .config import UNAVAILABLE_PLACEHOLDER
from .errors import FilesystemError
from .models import ReconstructedFile, SourceEntry, SourceMapDocument
from .utils import resolve_under_root, safe_relative_path

logger = logging.getLogger("mapripper")


def build_reconstructed_file(entry: SourceEntry) -> ReconstructedFile:
    content = entry.content if entry.content is not None else UNAVAILABLE_PLACEHOLDER
    return ReconstructedFile(relative_path=safe_relative_path(entry.path), content=content)


def write_reconstructed_file(output_root: Union[str, Path], item: ReconstructedFile) -> Path:
    """Create the parent directories and write ``item``, replacing any old file."""
    destination = resolve_under_root(output_root, item.relative_path)
    directory = destination.parent
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except (OSError, ValueError) as exc:
        raise FilesystemError(directory, f"could not create directory: {exc}") from exc
    # JSON may carry lone surrogates; encode them as they are.
    data = item.content.encode("utf-8", errors="surrogatepass")
    try:
        destination.write_bytes(data)
    except (OSError, ValueError) as exc:
        raise FilesystemError(destination, f"could not write file: {exc}") from exc
    return destination


def reconstruct(doc: SourceMapDocument, output_root: Union[str, Path]) -> int:
    """Materialize every entry of ``doc`` and return how many files were written."""
    written = 0
    for entry in doc.entries:
        item = build_reconstructed_file(entry)
        destination = write_reconstructed_file(output_root, item)
        if entry.content is None:
            logger.debug("No content for %s; wrote placeholder", entry.path)
        logger.debug("Wrote %s", destination)
        written += 1
    logger.info("Reconstructed %d file(s) from %s", written, doc.url)
    return written
