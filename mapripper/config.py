"""Configuration objects and constants for the source-map pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

DEFAULT_OUTPUT_ROOT = "sourcemaps"
DEFAULT_USER_AGENT = "mapripper/0.1 (+source map reconstruction)"
DEFAULT_TIMEOUT = 20.0
DEFAULT_MAX_WORKERS = 8

# Written in place of sources whose original text the map does not carry.
UNAVAILABLE_PLACEHOLDER = "null"

MAP_URL_POLICIES = ("append", "marker")


@dataclass
class RunConfig:
    """Settings for a single discovery/reconstruction run."""

    entry_url: str
    output_root: Path = Path(DEFAULT_OUTPUT_ROOT)
    headers: Dict[str, str] = field(default_factory=dict)
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    map_url_policy: str = "append"
    keep_going: bool = False
    max_workers: int = DEFAULT_MAX_WORKERS

    def __post_init__(self) -> None:
        if self.map_url_policy not in MAP_URL_POLICIES:
            raise ValueError(
                f"Unknown map URL policy {self.map_url_policy!r}; "
                f"expected one of {', '.join(MAP_URL_POLICIES)}"
            )
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.output_root = Path(self.output_root)
