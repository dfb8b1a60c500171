"""Data models used throughout the source-map pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class AssetKind(str, Enum):
    """Kinds of static asset the extractor recognises."""

    SCRIPT = "script"
    STYLESHEET = "stylesheet"


@dataclass(frozen=True)
class AssetReference:
    """Raw asset path as it appears in the page markup."""

    kind: AssetKind
    raw_path: str


@dataclass(frozen=True)
class ExtractedAssets:
    """Script and stylesheet references in document order."""

    scripts: List[str] = field(default_factory=list)
    stylesheets: List[str] = field(default_factory=list)

    def references(self) -> List[AssetReference]:
        """Return scripts followed by stylesheets as typed references."""
        refs = [AssetReference(AssetKind.SCRIPT, path) for path in self.scripts]
        refs.extend(
            AssetReference(AssetKind.STYLESHEET, path) for path in self.stylesheets
        )
        return refs

    def __len__(self) -> int:
        return len(self.scripts) + len(self.stylesheets)


@dataclass(frozen=True)
class SourceMapReference:
    """An asset that announced a source map, with the URL of that map."""

    asset_url: str
    map_url: str


@dataclass(frozen=True)
class SourceEntry:
    """One original file declared by a source map.

    ``content`` is ``None`` when the map does not carry the file's text.
    """

    path: str
    content: Optional[str]


@dataclass
class SourceMapDocument:
    """Decoded source map with ``sources``/``sourcesContent`` paired up."""

    url: str
    entries: List[SourceEntry] = field(default_factory=list)
    version: Optional[int] = None
    file: Optional[str] = None
    source_root: Optional[str] = None

    @property
    def sources(self) -> List[str]:
        return [entry.path for entry in self.entries]

    @property
    def sources_content(self) -> List[Optional[str]]:
        return [entry.content for entry in self.entries]


@dataclass(frozen=True)
class ReconstructedFile:
    """A sanitized output path and the text written to it."""

    relative_path: str
    content: str


@dataclass(frozen=True)
class ItemOutcome:
    """Failure record for one asset, map or reconstruction."""

    stage: str
    url: str
    error: str


@dataclass
class RunSummary:
    """What a pipeline run discovered and wrote."""

    entry_url: str
    assets: List[AssetReference] = field(default_factory=list)
    map_refs: List[SourceMapReference] = field(default_factory=list)
    documents: List[SourceMapDocument] = field(default_factory=list)
    files_written: int = 0
    failures: List[ItemOutcome] = field(default_factory=list)
    total_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.failures
