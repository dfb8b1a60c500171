"""Command-line entry point for source map discovery and reconstruction."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Sequence

from .config import (
    DEFAULT_MAX_WORKERS,
    DEFAULT_OUTPUT_ROOT,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    MAP_URL_POLICIES,
    RunConfig,
)
from .errors import MapRipperError
from .models import RunSummary
from .pipeline import run_pipeline
from .transport import Fetcher, HttpFetcher, parse_header

logger = logging.getLogger("mapripper.cli")

COMMANDS = ("inspect", "reconstruct")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return argv
    first = argv[0]
    if first in commands or first.startswith("-"):
        return argv
    return ("inspect", *argv)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("url", help="Page whose assets should be inspected")
    parser.add_argument(
        "-H",
        "--header",
        action="append",
        default=[],
        metavar="'NAME: VALUE'",
        help="Extra request header, forwarded verbatim (repeatable)",
    )
    parser.add_argument(
        "--cookie",
        default=None,
        help="Cookie header value sent with every request",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="Per-request timeout in seconds",
    )
    parser.add_argument(
        "--user-agent",
        default=DEFAULT_USER_AGENT,
        help="User-Agent header to send",
    )
    parser.add_argument(
        "--map-url",
        choices=MAP_URL_POLICIES,
        default="append",
        help=(
            "How to locate a map: 'append' adds .map to the asset URL, "
            "'marker' follows the sourceMappingURL comment value"
        ),
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=DEFAULT_MAX_WORKERS,
        help="Maximum number of concurrent requests per stage",
    )
    parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Skip failing assets and maps instead of stopping at the first error",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mapripper",
        description=(
            "Find publicly exposed source maps on a web page and rebuild the "
            "original source tree from them."
        ),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    inspect_parser = subparsers.add_parser(
        "inspect", help="List the source maps announced by a page's assets"
    )
    _add_common_arguments(inspect_parser)

    reconstruct_parser = subparsers.add_parser(
        "reconstruct", help="Download source maps and write their sources to disk"
    )
    _add_common_arguments(reconstruct_parser)
    reconstruct_parser.add_argument(
        "--output",
        default=DEFAULT_OUTPUT_ROOT,
        type=Path,
        help="Directory where reconstructed sources should be written",
    )
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = _build_parser()
    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, COMMANDS))
    args = parser.parse_args(argv)
    try:
        args.headers = _collect_headers(args.header, args.cookie)
    except ValueError as exc:
        parser.error(str(exc))
    if args.workers < 1:
        parser.error("--workers must be at least 1")
    return args


def _collect_headers(values: List[str], cookie: str | None) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    for value in values:
        headers.update(parse_header(value))
    if cookie:
        headers["Cookie"] = cookie
    return headers


def _build_config(args: argparse.Namespace) -> RunConfig:
    output = getattr(args, "output", Path(DEFAULT_OUTPUT_ROOT))
    return RunConfig(
        entry_url=args.url,
        output_root=Path(output).resolve(),
        headers=args.headers,
        timeout=args.timeout,
        user_agent=args.user_agent,
        map_url_policy=args.map_url,
        keep_going=args.keep_going,
        max_workers=args.workers,
    )


def _build_fetcher(config: RunConfig) -> Fetcher:
    return HttpFetcher.from_config(config)


def _report(summary: RunSummary, config: RunConfig, wrote: bool) -> None:
    if not summary.map_refs:
        logger.info("No source maps found for %s", summary.entry_url)
    for ref in summary.map_refs:
        sys.stdout.write(f"{ref.map_url}\n")
    sys.stdout.flush()

    logger.info(
        "Finished in %.2fs (%d assets, %d source maps)",
        summary.total_seconds,
        len(summary.assets),
        len(summary.map_refs),
    )
    if wrote:
        logger.info(
            "Wrote %d file(s) from %d map(s) to %s",
            summary.files_written,
            len(summary.documents),
            config.output_root,
        )
    for failure in summary.failures:
        logger.error("%s failed for %s: %s", failure.stage, failure.url, failure.error)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    try:
        config = _build_config(args)
    except ValueError as exc:
        logger.error("%s", exc)
        return 2

    write = args.command == "reconstruct"
    fetcher = _build_fetcher(config)
    try:
        summary = asyncio.run(run_pipeline(config, fetcher, write=write))
    except MapRipperError as exc:
        logger.error("%s", exc)
        if args.verbose:
            logger.debug("Failure details", exc_info=exc)
        return 1
    finally:
        fetcher.close()

    _report(summary, config, write)
    return 0 if summary.ok else 1


if __name__ == "__main__":
    sys.exit(main())
