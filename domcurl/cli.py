"""Command line entrypoint: ``domcurl [options] URL``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import re
import sys
from typing import Any, List, Optional

from . import __version__
from .cookies import parse_cookies
from .errors import DomcurlError, ValidationError
from .headers import build_header_map
from .models import NavigationOptions, Viewport, WaitCondition, parse_absolute_url
from .navigation import fetch
from .output import OutputSink, configure_diagnostics, release_diagnostics

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

_VIEWPORT_RE = re.compile(r"^(\d+)x(\d+)$")

logger = logging.getLogger("domcurl")


class _ArgumentParser(argparse.ArgumentParser):
    """Report usage errors as validation failures (exit 1, not 2)."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise ValidationError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="domcurl",
        description="Fetch a URL through a headless browser and print the rendered DOM.",
    )
    parser.add_argument("target", nargs="?", help="URL to fetch")
    parser.add_argument("--url", default=None, help="URL to fetch (overrides the positional URL)")
    parser.add_argument("-m", "--max-time", default="30", help="Maximum navigation time in seconds (default: 30)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print request and response headers")
    parser.add_argument("-A", "--user-agent", default=None, help="User agent to send")
    parser.add_argument("-H", "--header", action="append", default=None, help="Extra header 'Name: value' (repeatable)")
    parser.add_argument("-e", "--referer", default=None, help="Referer URL")
    parser.add_argument("-b", "--cookie", action="append", default=None, help="Cookie 'name=value; Path=/; ...' (repeatable)")
    parser.add_argument("-o", "--output", nargs="?", const=True, default=None, help="Write the DOM to this file")
    parser.add_argument("-X", "--request", default=None, help="HTTP method for the main request")
    parser.add_argument("-d", "--data", default=None, help="Request body for the main request")
    parser.add_argument("-V", "--viewport", default=None, help="Viewport as WIDTHxHEIGHT, e.g. 1920x1080")
    parser.add_argument(
        "--waituntil",
        default=WaitCondition.NETWORKIDLE0.value,
        help="One of: " + ", ".join(c.value for c in WaitCondition) + " (default: networkidle0)",
    )
    parser.add_argument("--trace", nargs="?", const=True, default=None, help="Write a Playwright trace to this file")
    parser.add_argument(
        "--stderr",
        action="append",
        nargs="?",
        const=True,
        default=None,
        help="Write diagnostics to this file ('-' for standard output)",
    )
    parser.add_argument("--version", action="version", version=__version__)
    return parser


def stderr_target(args: argparse.Namespace) -> Optional[str]:
    values = args.stderr or []
    if not values:
        return None
    # Last --stderr wins.
    value = values[-1]
    if value is True or not str(value):
        raise ValidationError("--stderr must be a filename if argument is present")
    return str(value)


def diagnostics_target(argv: List[str]) -> Optional[str]:
    """Resolve --stderr ahead of other flags so every error honours it."""
    parser = _ArgumentParser(add_help=False)
    parser.add_argument("--stderr", action="append", nargs="?", const=True, default=None)
    known, _ = parser.parse_known_args(argv)
    return stderr_target(known)


def output_path(args: argparse.Namespace) -> Optional[str]:
    if args.output is True:
        raise ValidationError("--output must be a filename if argument is present")
    return str(args.output) if args.output else None


def parse_viewport(value: Optional[str]) -> Optional[Viewport]:
    if not value:
        return None
    match = _VIEWPORT_RE.match(str(value))
    if match is None:
        raise ValidationError("-V --viewport must be in format WIDTHxHEIGHT (e.g., 1920x1080)")
    return Viewport(width=int(match.group(1)), height=int(match.group(2)))


def options_from_args(args: argparse.Namespace) -> NavigationOptions:
    """Validate parsed flags and build the run's options bundle."""
    wait_until = WaitCondition.parse(args.waituntil)

    if args.trace is True:
        raise ValidationError("--trace must be a string")

    try:
        url = parse_absolute_url(args.url or args.target)
    except ValidationError:
        raise ValidationError("--url or default value is not a valid URL") from None

    viewport = parse_viewport(args.viewport)

    return NavigationOptions.build(
        url,
        method=args.request,
        body=args.data,
        referer=args.referer,
        user_agent=args.user_agent,
        headers=build_header_map(args.header),
        cookies=parse_cookies(args.cookie, url),
        wait_until=wait_until,
        max_time_seconds=args.max_time,
        trace_path=args.trace,
        verbose=args.verbose,
        viewport=viewport,
    )


def run(options: NavigationOptions, sink: OutputSink) -> Any:
    return asyncio.run(fetch(options, sink=sink, logger=logger))


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    handler = None
    sink: Optional[OutputSink] = None
    argv = list(sys.argv[1:] if argv is None else argv)
    try:
        handler = configure_diagnostics(diagnostics_target(argv))
        try:
            args = parser.parse_args(argv)
        except SystemExit as e:
            # --help and --version
            return int(e.code or 0)
        sink = OutputSink(path=output_path(args))
        options = options_from_args(args)
        run(options, sink)
        sink.close()
        return EXIT_SUCCESS
    except DomcurlError as e:
        handler = handler or configure_diagnostics()
        logger.error("%s", e)
        return EXIT_FAILURE
    except Exception as e:
        handler = handler or configure_diagnostics()
        logger.exception("Unexpected error: %s", e)
        return EXIT_FAILURE
    finally:
        if sink is not None:
            try:
                sink.close()
            except DomcurlError as e:
                logger.error("%s", e)
        release_diagnostics(handler)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
