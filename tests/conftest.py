"""In-process stand-ins for the Playwright objects domcurl drives."""

from __future__ import annotations

import io
from typing import Any, Dict, List, Optional

import pytest

from domcurl.models import SessionState
from domcurl.output import OutputSink


class FakeRequest:
    def __init__(self, url: str, method: str = "GET", headers: Optional[Dict[str, str]] = None, post_data: Optional[str] = None):
        self.url = url
        self.method = method
        self.headers = dict(headers or {})
        self.post_data = post_data


class FakeRoute:
    def __init__(self, request: FakeRequest, events: List[Any]):
        self.request = request
        self.events = events
        self.resolutions: List[Any] = []

    async def continue_(self, **overrides: Any) -> None:
        self.resolutions.append(("continue", overrides))
        self.events.append(("continue", self.request.url, overrides))

    async def abort(self, error_code: Optional[str] = None) -> None:
        self.resolutions.append(("abort", error_code))
        self.events.append(("abort", self.request.url))


class FakeResponse:
    def __init__(self, status: int = 200, status_text: str = "OK", headers: Optional[Dict[str, str]] = None):
        self.status = status
        self.status_text = status_text
        self.headers = dict(headers or {"content-type": "text/html"})

    async def all_headers(self) -> Dict[str, str]:
        return dict(self.headers)


class FakeTracing:
    def __init__(self, events: List[Any]):
        self.events = events
        self.start_error: Optional[BaseException] = None

    async def start(self, **kwargs: Any) -> None:
        if self.start_error is not None:
            raise self.start_error
        self.events.append(("tracing.start", kwargs))

    async def stop(self, path: Optional[str] = None) -> None:
        self.events.append(("tracing.stop", path))


class FakeContext:
    def __init__(self, events: List[Any]):
        self.events = events
        self.tracing = FakeTracing(events)
        self.cookies: List[Dict[str, Any]] = []
        self.add_cookies_error: Optional[BaseException] = None
        self.closed = False

    async def add_cookies(self, cookies: List[Dict[str, Any]]) -> None:
        if self.add_cookies_error is not None:
            raise self.add_cookies_error
        self.cookies.extend(cookies)
        self.events.append(("add_cookies", cookies))

    async def close(self) -> None:
        self.closed = True


class FakePage:
    """Replays ``outgoing`` requests through route or request handlers on goto."""

    def __init__(self, events: List[Any]):
        self.events = events
        self.url = "about:blank"
        self.outgoing: List[FakeRequest] = []
        self.routes: List[FakeRoute] = []
        self.route_handlers: List[Any] = []
        self.request_listeners: List[Any] = []
        self.extra_headers: Optional[Dict[str, str]] = None
        self.response: Optional[FakeResponse] = FakeResponse()
        self.goto_error: Optional[BaseException] = None
        self.goto_calls: List[Dict[str, Any]] = []
        self.html = "<html><head></head><body>hello</body></html>"

    async def route(self, pattern: str, handler: Any) -> None:
        self.route_handlers.append(handler)
        self.events.append(("route", pattern))

    async def unroute(self, pattern: str, handler: Any = None) -> None:
        if handler in self.route_handlers:
            self.route_handlers.remove(handler)
        self.events.append(("unroute", pattern))

    def on(self, event: str, handler: Any) -> None:
        if event == "request":
            self.request_listeners.append(handler)
        self.events.append(("on", event))

    def remove_listener(self, event: str, handler: Any) -> None:
        if handler in self.request_listeners:
            self.request_listeners.remove(handler)

    async def set_extra_http_headers(self, headers: Dict[str, str]) -> None:
        self.extra_headers = dict(headers)
        self.events.append(("set_extra_http_headers", dict(headers)))

    async def goto(self, url: str, wait_until: str = "load", timeout: Optional[float] = None) -> Any:
        self.goto_calls.append({"url": url, "wait_until": wait_until, "timeout": timeout})
        self.events.append(("goto", url))
        if self.goto_error is not None:
            raise self.goto_error
        for request in self.outgoing:
            for listener in list(self.request_listeners):
                listener(request)
            for handler in list(self.route_handlers):
                route = FakeRoute(request, self.events)
                self.routes.append(route)
                await handler(route)
        self.url = url
        return self.response

    async def content(self) -> str:
        self.events.append(("content",))
        return self.html


class FakeSessionManager:
    def __init__(self):
        self.events: List[Any] = []
        self.context = FakeContext(self.events)
        self.page = FakePage(self.events)
        self.configs: List[Any] = []
        self.start_error: Optional[BaseException] = None
        self.shutdown_calls = 0

    async def start(self, config: Any) -> SessionState:
        self.configs.append(config)
        if self.start_error is not None:
            raise self.start_error
        self.events.append(("start",))
        return SessionState(
            active=True,
            browser_context=self.context,
            page=self.page,
        )

    async def shutdown(self, state: Optional[SessionState]) -> None:
        self.shutdown_calls += 1
        self.events.append(("shutdown",))
        if state is not None:
            state.mark_closed()


@pytest.fixture
def session_manager() -> FakeSessionManager:
    return FakeSessionManager()


@pytest.fixture
def buffer() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def sink(buffer: io.StringIO) -> OutputSink:
    return OutputSink(stream=buffer)
