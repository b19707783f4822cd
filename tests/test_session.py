import asyncio

import pytest

from domcurl import session as session_module
from domcurl.errors import LaunchError
from domcurl.models import SessionConfig, Viewport
from domcurl.session import BrowserSessionManager


class _Page:
    def __init__(self):
        self.timeouts = []

    def set_default_timeout(self, value):
        self.timeouts.append(("default", value))

    def set_default_navigation_timeout(self, value):
        self.timeouts.append(("navigation", value))


class _Context(_Page):
    def __init__(self):
        super().__init__()
        self.page = _Page()
        self.closed = False

    async def new_page(self):
        return self.page

    async def close(self):
        self.closed = True


class _Browser:
    def __init__(self):
        self.context_kwargs = None
        self.context = _Context()
        self.closed = False

    async def new_context(self, **kwargs):
        self.context_kwargs = kwargs
        return self.context

    async def close(self):
        self.closed = True


class _Launcher:
    def __init__(self, fail=False):
        self.fail = fail
        self.browser = _Browser()
        self.launch_kwargs = None

    async def launch(self, **kwargs):
        self.launch_kwargs = kwargs
        if self.fail:
            raise RuntimeError("Executable doesn't exist")
        return self.browser


class _Playwright:
    def __init__(self, fail=False):
        self.chromium = _Launcher(fail=fail)
        self.stopped = False

    async def stop(self):
        self.stopped = True


def _install(monkeypatch, pw):
    class _Factory:
        async def start(self):
            return pw

    monkeypatch.setattr(session_module, "async_playwright", lambda: _Factory())


def test_start_configures_context_and_page(monkeypatch):
    pw = _Playwright()
    _install(monkeypatch, pw)
    config = SessionConfig(timeout_ms=5000, user_agent="bot/1", viewport=Viewport(640, 480))
    manager = BrowserSessionManager()

    state = asyncio.run(manager.start(config))

    browser = pw.chromium.browser
    assert pw.chromium.launch_kwargs == {"headless": True, "args": ["--no-sandbox", "--disable-dev-shm-usage"]}
    assert browser.context_kwargs == {"user_agent": "bot/1", "viewport": {"width": 640, "height": 480}}
    assert state.active is True
    assert state.page is browser.context.page
    assert ("navigation", 5000.0) in state.page.timeouts
    assert ("default", 5000.0) in browser.context.timeouts

    asyncio.run(manager.shutdown(state))
    assert browser.context.closed and browser.closed and pw.stopped
    assert state.active is False
    assert state.ended_at is not None


def test_context_without_overrides(monkeypatch):
    pw = _Playwright()
    _install(monkeypatch, pw)
    asyncio.run(BrowserSessionManager().start(SessionConfig()))
    assert pw.chromium.browser.context_kwargs == {}


def test_launch_failure_cleans_up(monkeypatch):
    pw = _Playwright(fail=True)
    _install(monkeypatch, pw)
    with pytest.raises(LaunchError, match="Executable doesn't exist"):
        asyncio.run(BrowserSessionManager().start(SessionConfig()))
    assert pw.stopped


def test_missing_playwright(monkeypatch):
    monkeypatch.setattr(session_module, "async_playwright", None)
    with pytest.raises(LaunchError, match="pip install playwright"):
        asyncio.run(BrowserSessionManager().start(SessionConfig()))


def test_shutdown_none_is_noop():
    asyncio.run(BrowserSessionManager().shutdown(None))
