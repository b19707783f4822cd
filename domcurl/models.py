"""Shared models for domcurl runs."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import quote, urldefrag, urlsplit, urlunsplit

from .errors import ValidationError


_DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443, "ftp": 21}

# Characters left as-is when the browser serialises a path or query.
_PATH_SAFE = "/%!$&'()*+,;=:@[]~^|\\"
_QUERY_SAFE = _PATH_SAFE.replace("'", "") + "?`{}"


def remove_dot_segments(path: str) -> str:
    """Resolve ``.`` and ``..`` segments of an absolute path."""
    if not path:
        return path
    output: List[str] = []
    segments = path.split("/")
    for i, segment in enumerate(segments[1:], start=1):
        last = i == len(segments) - 1
        if segment == ".":
            if last:
                output.append("")
        elif segment == "..":
            if output:
                output.pop()
            if last:
                output.append("")
        else:
            output.append(segment)
    return "/" + "/".join(output)


def parse_absolute_url(raw: Optional[str]) -> str:
    """Return the normalised href of an absolute URL or raise ValidationError.

    Normalisation follows what the browser reports for the same request:
    lower-cased scheme and host, no default port, dot segments resolved,
    path and query percent-encoded, and ``/`` as the path of a bare origin.
    """
    text = str(raw or "").strip()
    if not text:
        raise ValidationError("URL is required")
    try:
        parts = urlsplit(text)
        # Touch .port so malformed ports fail here rather than in the engine.
        port = parts.port
    except ValueError as e:
        raise ValidationError(f"Invalid URL {text!r}: {e}") from e
    if not parts.scheme or not parts.netloc or not parts.hostname:
        raise ValidationError(f"Invalid URL {text!r}: not absolute")

    scheme = parts.scheme.lower()
    host = parts.hostname or ""
    try:
        host = host.encode("idna").decode("ascii") if not host.isascii() else host
    except UnicodeError as e:
        raise ValidationError(f"Invalid URL {text!r}: {e}") from e
    if ":" in host:
        host = f"[{host}]"
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        host = f"{host}:{port}"
    userinfo, at, _ = parts.netloc.rpartition("@")
    netloc = f"{userinfo}{at}{host}"

    special = scheme in _DEFAULT_PORTS
    raw_path = parts.path.replace("\\", "/") if special else parts.path
    path = remove_dot_segments(quote(raw_path, safe=_PATH_SAFE))
    if not path and special:
        path = "/"
    query = quote(parts.query, safe=_QUERY_SAFE if special else _PATH_SAFE + "?`{}")
    return urlunsplit((scheme, netloc, path, query, parts.fragment))


def without_fragment(url: str) -> str:
    """URL as it appears on the wire; browsers never send the fragment."""
    return urldefrag(str(url or ""))[0]


class WaitCondition(str, Enum):
    """Page-lifecycle signal that ends a navigation."""

    LOAD = "load"
    DOMCONTENTLOADED = "domcontentloaded"
    NETWORKIDLE0 = "networkidle0"
    NETWORKIDLE1 = "networkidle1"

    @classmethod
    def parse(cls, value: Any) -> "WaitCondition":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            allowed = ", ".join(c.value for c in cls)
            raise ValidationError(f"--waituntil can only be one of: {allowed}") from None

    @property
    def playwright_value(self) -> str:
        # Playwright exposes a single network-idle threshold.
        if self in (WaitCondition.NETWORKIDLE0, WaitCondition.NETWORKIDLE1):
            return "networkidle"
        return self.value


@dataclass(frozen=True)
class Viewport:
    width: int
    height: int

    MAX_WIDTH = 7680
    MAX_HEIGHT = 4320

    def __post_init__(self) -> None:
        if not (1 <= int(self.width) <= self.MAX_WIDTH and 1 <= int(self.height) <= self.MAX_HEIGHT):
            raise ValidationError(
                "-V --viewport dimensions must be between 1-7680 (width) and 1-4320 (height)"
            )

    def as_dict(self) -> Dict[str, int]:
        return {"width": int(self.width), "height": int(self.height)}


@dataclass(frozen=True)
class Cookie:
    """One cookie to inject before navigation.

    Scoped either to ``domain`` or to ``url`` (never both) and either
    expiring at ``expires`` (epoch seconds) or living for the session.
    """

    name: str
    value: str
    domain: Optional[str] = None
    url: Optional[str] = None
    path: Optional[str] = None
    secure: bool = False
    http_only: bool = False
    same_site: Optional[str] = None
    expires: Optional[int] = None
    session: bool = False

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Cookie name must not be empty")
        if bool(self.domain) == bool(self.url):
            raise ValueError("Cookie must be scoped to exactly one of domain or url")
        if (self.expires is not None) == bool(self.session):
            raise ValueError("Cookie must have exactly one of expires or session")
        if self.same_site is not None and self.same_site not in ("Lax", "Strict"):
            raise ValueError(f"Unsupported sameSite value: {self.same_site}")

    def to_playwright(self) -> Dict[str, Any]:
        """Shape accepted by ``BrowserContext.add_cookies``."""
        cookie: Dict[str, Any] = {
            "name": self.name,
            "value": self.value,
            "secure": bool(self.secure),
            "httpOnly": bool(self.http_only),
            # Playwright marks session cookies with -1.
            "expires": float(self.expires) if self.expires is not None else -1,
        }
        if self.domain:
            cookie["domain"] = self.domain
            cookie["path"] = self.path or "/"
        elif self.path:
            # url and path are mutually exclusive in Playwright; keep the
            # secure flag it would infer from an https url.
            target = urlsplit(str(self.url))
            cookie["domain"] = target.hostname or ""
            cookie["path"] = self.path
            cookie["secure"] = bool(self.secure) or target.scheme == "https"
        else:
            cookie["url"] = self.url
        if self.same_site:
            cookie["sameSite"] = self.same_site
        return cookie


@dataclass(frozen=True)
class NavigationOptions:
    """Immutable bundle describing one navigation."""

    url: str
    method: Optional[str] = None
    body: Optional[str] = None
    referer: Optional[str] = None
    user_agent: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)
    cookies: Tuple[Cookie, ...] = ()
    wait_until: WaitCondition = WaitCondition.NETWORKIDLE0
    max_time_ms: int = 30000
    trace_path: Optional[str] = None
    echo_request_headers: bool = False
    echo_response_headers: bool = False
    viewport: Optional[Viewport] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "url", parse_absolute_url(self.url))
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers or {})))
        object.__setattr__(self, "cookies", tuple(self.cookies or ()))
        object.__setattr__(self, "wait_until", WaitCondition.parse(self.wait_until))
        try:
            max_time_ms = int(self.max_time_ms)
        except (TypeError, ValueError):
            raise ValidationError("--max-time can only be a number greater than 0") from None
        if max_time_ms <= 0:
            raise ValidationError("--max-time can only be a number greater than 0")
        object.__setattr__(self, "max_time_ms", max_time_ms)

    @classmethod
    def build(
        cls,
        url: str,
        *,
        method: Optional[str] = None,
        body: Optional[str] = None,
        referer: Optional[str] = None,
        user_agent: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        cookies: Optional[Sequence[Cookie]] = None,
        wait_until: Any = WaitCondition.NETWORKIDLE0,
        max_time_seconds: Any = 30,
        trace_path: Optional[str] = None,
        verbose: bool = False,
        viewport: Optional[Viewport] = None,
    ) -> "NavigationOptions":
        """Build options from loosely typed flag values."""
        try:
            seconds = float(max_time_seconds)
        except (TypeError, ValueError):
            raise ValidationError("--max-time can only be a number greater than 0") from None
        if not seconds > 0 or seconds == float("inf"):
            raise ValidationError("--max-time can only be a number greater than 0")

        resolved_referer = None
        if referer:
            try:
                resolved_referer = parse_absolute_url(referer)
            except ValidationError:
                raise ValidationError("-e --referer is not a valid URL") from None

        return cls(
            url=url,
            method=method or None,
            body=body if body else None,
            referer=resolved_referer,
            user_agent=user_agent or None,
            headers=dict(headers or {}),
            cookies=tuple(cookies or ()),
            wait_until=WaitCondition.parse(wait_until),
            max_time_ms=max(1, int(seconds * 1000)),
            trace_path=trace_path or None,
            echo_request_headers=bool(verbose),
            echo_response_headers=bool(verbose),
            viewport=viewport,
        )

    @property
    def interception_required(self) -> bool:
        return bool(self.method) or bool(self.body)


@dataclass(frozen=True)
class SessionConfig:
    """Immutable browser-session configuration."""

    headless: bool = True
    timeout_ms: int = 30000
    user_agent: Optional[str] = None
    viewport: Optional[Viewport] = None
    launch_args: Tuple[str, ...] = ("--no-sandbox", "--disable-dev-shm-usage")

    @classmethod
    def for_options(cls, options: NavigationOptions) -> "SessionConfig":
        return cls(
            timeout_ms=options.max_time_ms,
            user_agent=options.user_agent,
            viewport=options.viewport,
        )


@dataclass
class SessionState:
    """Mutable runtime state for an open browser session."""

    active: bool = False
    started_at: Optional[float] = None
    ended_at: Optional[float] = None
    playwright: Any = None
    browser: Any = None
    browser_context: Any = None
    page: Any = None
    tracing: bool = False

    def mark_closed(self) -> None:
        self.active = False
        self.ended_at = time.time()


@dataclass(frozen=True)
class InterceptedRequest:
    """Transient view of one outgoing request."""

    url: str
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Optional[str] = None

    @classmethod
    def from_playwright(cls, request: Any) -> "InterceptedRequest":
        try:
            body = request.post_data
        except Exception:
            body = None
        return cls(
            url=str(getattr(request, "url", "") or ""),
            method=str(getattr(request, "method", "") or "GET"),
            headers=dict(getattr(request, "headers", {}) or {}),
            body=body,
        )


@dataclass(frozen=True)
class RequestResolution:
    """How one intercepted request is resolved.

    An empty resolution continues the request unmodified.
    """

    method: Optional[str] = None
    post_data: Optional[str] = None
    headers: Optional[Mapping[str, str]] = None
    abort: bool = False

    @property
    def is_passthrough(self) -> bool:
        return not self.abort and not self.overrides()

    def overrides(self) -> Dict[str, Any]:
        """Keyword arguments for ``Route.continue_``."""
        out: Dict[str, Any] = {}
        if self.method is not None:
            out["method"] = self.method
        if self.post_data is not None:
            out["post_data"] = self.post_data
        if self.headers is not None:
            out["headers"] = dict(self.headers)
        return out


@dataclass
class NavigationResult:
    """Rendered document plus main response metadata."""

    html: str
    status: Optional[int] = None
    status_text: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
