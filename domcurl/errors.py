"""Error taxonomy for domcurl runs."""

from __future__ import annotations


class DomcurlError(Exception):
    """Base class for every failure that terminates a run."""


class ValidationError(DomcurlError):
    """Bad option value; raised before any navigation is attempted."""


class CookieParseError(DomcurlError, ValueError):
    """Raw cookie string could not be split into a name and a value."""

    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f"Cookie string has no name=value pair: {raw!r}")


ParseError = CookieParseError


class LaunchError(DomcurlError):
    """Browser session could not be acquired."""


class NavigationError(DomcurlError):
    """Navigation to the target URL failed."""


class NavigationTimeoutError(NavigationError):
    """Navigation did not reach its wait condition within max time."""

    def __init__(self, url: str, timeout_ms: int):
        self.url = url
        self.timeout_ms = int(timeout_ms)
        super().__init__(f"Navigation timeout of {self.timeout_ms} ms exceeded: {url}")


class OutputError(DomcurlError):
    """Output sink could not be opened or written."""
