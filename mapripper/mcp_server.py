"""MCP server exposing source map inspection and reconstruction tools."""

from __future__ import annotations

import logging
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from .config import DEFAULT_OUTPUT_ROOT, RunConfig
from .models import RunSummary
from .pipeline import run_pipeline

logger = logging.getLogger("mapripper.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="mapripper")


def _format_summary(summary: RunSummary, output_root: Path | None = None) -> str:
    lines = [f"Entry: {summary.entry_url}", f"Assets: {len(summary.assets)}"]
    if summary.map_refs:
        lines.append("Source maps:")
        lines.extend(f"- {ref.map_url}" for ref in summary.map_refs)
    else:
        lines.append("No source maps found")
    if output_root is not None:
        lines.append(f"Files written: {summary.files_written} (under {output_root})")
    for failure in summary.failures:
        lines.append(f"Failed {failure.stage} {failure.url}: {failure.error}")
    return "\n".join(lines)


@mcp.tool()
async def inspect(url: str, keep_going: bool = False) -> str:
    """List the source maps announced by the scripts and stylesheets of a page."""
    config = RunConfig(entry_url=url, keep_going=keep_going)
    summary = await run_pipeline(config, write=False)
    return _format_summary(summary)


@mcp.tool()
async def reconstruct(
    url: str,
    output_dir: str = DEFAULT_OUTPUT_ROOT,
    keep_going: bool = False,
) -> str:
    """Download a page's source maps and write the original sources to disk."""
    output_root = Path(output_dir).expanduser().resolve()
    config = RunConfig(entry_url=url, output_root=output_root, keep_going=keep_going)
    summary = await run_pipeline(config, write=True)
    return _format_summary(summary, output_root)


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
