"""domcurl: curl for rendered pages."""

__version__ = "1.0.0"

from .cookies import parse_cookie_string, parse_cookies
from .errors import (
    CookieParseError,
    DomcurlError,
    LaunchError,
    NavigationError,
    NavigationTimeoutError,
    OutputError,
    ParseError,
    ValidationError,
)
from .headers import build_header_map
from .interception import RequestInterceptor, RequestOverridePolicy
from .models import (
    Cookie,
    InterceptedRequest,
    NavigationOptions,
    NavigationResult,
    RequestResolution,
    SessionConfig,
    SessionState,
    Viewport,
    WaitCondition,
)
from .navigation import NavigationDriver, RunPhase, fetch
from .output import OutputSink
from .session import BrowserSessionManager

__all__ = [
    "__version__",
    "BrowserSessionManager",
    "Cookie",
    "CookieParseError",
    "DomcurlError",
    "InterceptedRequest",
    "LaunchError",
    "NavigationDriver",
    "NavigationError",
    "NavigationOptions",
    "NavigationResult",
    "NavigationTimeoutError",
    "OutputError",
    "OutputSink",
    "ParseError",
    "RequestInterceptor",
    "RequestOverridePolicy",
    "RequestResolution",
    "RunPhase",
    "SessionConfig",
    "SessionState",
    "ValidationError",
    "Viewport",
    "WaitCondition",
    "build_header_map",
    "fetch",
    "parse_cookie_string",
    "parse_cookies",
]
