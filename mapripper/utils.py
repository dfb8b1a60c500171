"""Path helpers for turning untrusted source-map paths into safe output paths."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Union

from .errors import FilesystemError, InvalidInputError

PARENT_SEGMENT = "../"
UNNAMED_SOURCE = "_unnamed"
DRIVE_PATTERN = re.compile(r"^[A-Za-z]:")


def sanitize_source_path(raw_path: str) -> str:
    """Strip every ``../`` occurrence, repeating until none is left."""
    if not isinstance(raw_path, str):
        raise InvalidInputError(
            f"source path must be a string, got {type(raw_path).__name__}"
        )
    cleaned = raw_path
    while PARENT_SEGMENT in cleaned:
        cleaned = cleaned.replace(PARENT_SEGMENT, "")
    return cleaned


def _strip_segments(path: str) -> str:
    cleaned = sanitize_source_path(path)
    parts = [part for part in cleaned.split("/") if part not in ("", ".", "..")]
    while parts and DRIVE_PATTERN.match(parts[0]):
        parts[0] = DRIVE_PATTERN.sub("", parts[0])
        if not parts[0]:
            parts.pop(0)
    return "/".join(parts)


def safe_relative_path(raw_path: str) -> str:
    """Return a POSIX relative path that cannot be rooted outside its parent.

    Backslashes count as separators, leading drive letters are dropped and
    empty, ``.`` and ``..`` segments are removed after the textual strip.
    The cleanup repeats until the path is stable, so the result is a fixed
    point. Paths containing a NUL byte are refused with ``FilesystemError``.
    """
    if not isinstance(raw_path, str):
        raise InvalidInputError(
            f"source path must be a string, got {type(raw_path).__name__}"
        )
    if "\x00" in raw_path:
        raise FilesystemError(
            raw_path.replace("\x00", "\\x00"), "source path contains a NUL byte"
        )
    cleaned = raw_path.replace("\\", "/")
    while True:
        stripped = _strip_segments(cleaned)
        if stripped == cleaned:
            break
        cleaned = stripped
    return cleaned or UNNAMED_SOURCE


def resolve_under_root(root: Union[str, Path], relative_path: str) -> Path:
    """Join ``relative_path`` onto ``root`` and refuse anything that escapes it."""
    root_path = Path(root)
    candidate = root_path.joinpath(*safe_relative_path(relative_path).split("/"))
    normalized_root = os.path.normpath(os.path.abspath(root_path))
    normalized = os.path.normpath(os.path.abspath(candidate))
    if normalized == normalized_root or os.path.commonpath(
        [normalized_root, normalized]
    ) != normalized_root:
        raise FilesystemError(
            candidate, f"source path {relative_path!r} escapes the output root"
        )
    return candidate
