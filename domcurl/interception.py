"""Request override policy and the page handlers that apply it."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlsplit

from .headers import format_header_lines, has_header
from .models import InterceptedRequest, NavigationOptions, RequestResolution, without_fragment
from .output import OutputSink

DEFAULT_CONTENT_TYPE = "application/x-www-form-urlencoded"


class RequestOverridePolicy:
    """Decide how each outgoing request is resolved.

    Only the request whose URL equals the navigation URL is ever rewritten;
    every other request continues unmodified.
    """

    def __init__(self, options: NavigationOptions):
        self.options = options
        self._main_url = without_fragment(options.url)
        self._page_headers = self._merge_page_headers()

    @property
    def interception_required(self) -> bool:
        return self.options.interception_required

    def page_headers(self) -> Dict[str, str]:
        """Extra headers applied page-wide: referer, then user headers."""
        return dict(self._page_headers)

    def is_main_request(self, url: str) -> bool:
        return without_fragment(url) == self._main_url

    def main_request_headers(self, request_headers: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """Effective headers of the main request once overrides are applied."""
        merged: Dict[str, str] = dict(request_headers or {})
        merged.update(self._page_headers)
        if self.options.body and not self._has_content_type(request_headers):
            merged["content-type"] = DEFAULT_CONTENT_TYPE
        return merged

    def resolve(self, request: InterceptedRequest) -> RequestResolution:
        if not self.is_main_request(request.url):
            return RequestResolution()

        method = self.options.method.upper() if self.options.method else None
        post_data = self.options.body or None
        headers = None
        if post_data is not None and not self._has_content_type(request.headers):
            headers = self.main_request_headers(request.headers)
        return RequestResolution(method=method, post_data=post_data, headers=headers)

    def echo_lines(self, request: InterceptedRequest, resolution: Optional[RequestResolution] = None) -> List[str]:
        """Request echo for the main request as it is actually sent."""
        resolution = resolution or RequestResolution()
        parts = urlsplit(self.options.url)
        host = parts.netloc.rsplit("@", 1)[-1]
        method = resolution.method or request.method
        headers = resolution.headers if resolution.headers is not None else request.headers
        lines = [f"> {method} {parts.path or '/'} ", f"> Host: {host}"]
        lines.extend(format_header_lines(headers, ">"))
        return lines

    def _merge_page_headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if self.options.referer:
            headers["referer"] = self.options.referer
        headers.update(self.options.headers or {})
        return headers

    def _has_content_type(self, request_headers: Optional[Mapping[str, str]] = None) -> bool:
        return has_header(self._page_headers, "content-type", "Content-Type") or has_header(
            request_headers, "content-type", "Content-Type"
        )


class RequestInterceptor:
    """Bind a :class:`RequestOverridePolicy` to a page.

    With a method or body override every request is paused through
    ``page.route`` and resolved exactly once; otherwise requests are only
    observed for echo output.
    """

    ROUTE_PATTERN = "**/*"

    def __init__(
        self,
        policy: RequestOverridePolicy,
        sink: Optional[OutputSink] = None,
        logger: Any = None,
    ):
        self.policy = policy
        self.sink = sink
        self.logger = logger or logging.getLogger(__name__)
        self.intercepting = False
        self.resolved_count = 0
        self.modified_count = 0
        self.aborted_count = 0
        self._page: Any = None

    async def attach(self, page: Any) -> None:
        if self._page is not None:
            return
        if self.policy.interception_required:
            await page.route(self.ROUTE_PATTERN, self._on_route)
            self.intercepting = True
        else:
            page.on("request", self._on_request)
        self._page = page

    async def detach(self) -> None:
        page = self._page
        if page is None:
            return
        try:
            if self.intercepting:
                await page.unroute(self.ROUTE_PATTERN, self._on_route)
            else:
                page.remove_listener("request", self._on_request)
        except Exception as e:
            self.logger.debug("Failed to detach request handler: %s", e)
        self._page = None
        self.intercepting = False

    async def _on_route(self, route: Any) -> None:
        request = InterceptedRequest.from_playwright(route.request)
        try:
            resolution = self.policy.resolve(request)
            if self.policy.is_main_request(request.url) and self.policy.options.echo_request_headers:
                self._echo(self.policy.echo_lines(request, resolution))
        except Exception as e:
            self.logger.error("Aborting request %s: %s", request.url, e)
            resolution = RequestResolution(abort=True)

        if resolution.abort:
            await route.abort()
            self.aborted_count += 1
        elif resolution.is_passthrough:
            await route.continue_()
        else:
            self.logger.debug("Overriding main request: %s", sorted(resolution.overrides()))
            await route.continue_(**resolution.overrides())
            self.modified_count += 1
        self.resolved_count += 1

    def _on_request(self, request: Any) -> None:
        if not self.policy.options.echo_request_headers:
            return
        view = InterceptedRequest.from_playwright(request)
        if not self.policy.is_main_request(view.url):
            return
        try:
            self._echo(self.policy.echo_lines(view))
        except Exception as e:
            self.logger.warning("Failed to echo request headers: %s", e)

    def _echo(self, lines: List[str]) -> None:
        if self.sink is not None:
            self.sink.write_lines(lines)
