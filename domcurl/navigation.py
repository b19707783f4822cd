"""Navigation driver: one browser session, one navigation, one document."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .errors import NavigationError, NavigationTimeoutError
from .headers import format_header_lines
from .interception import RequestInterceptor, RequestOverridePolicy
from .models import NavigationOptions, NavigationResult, SessionConfig, SessionState
from .output import OutputSink
from .session import BrowserSessionManager


class RunPhase(str, Enum):
    IDLE = "idle"
    LAUNCHING = "launching"
    CONFIGURING = "configuring"
    NAVIGATING = "navigating"
    EXTRACTING = "extracting"
    DONE = "done"
    FAILED = "failed"


class NavigationDriver:
    """Fetch ``options.url`` through a real browser and emit its DOM.

    Phases run strictly in order: launching, configuring, navigating,
    extracting, done. Any exception moves the run to ``failed`` and is
    re-raised after the session is shut down; nothing is retried.
    """

    def __init__(
        self,
        *,
        options: NavigationOptions,
        sink: Optional[OutputSink] = None,
        session_manager: Optional[BrowserSessionManager] = None,
        logger: Any = None,
    ):
        self.options = options
        self.sink = sink or OutputSink()
        self.session_manager = session_manager or BrowserSessionManager()
        self.logger = logger or logging.getLogger(__name__)
        self.policy = RequestOverridePolicy(options)
        self.interceptor = RequestInterceptor(self.policy, sink=self.sink, logger=self.logger)
        self.phase = RunPhase.IDLE
        self.history: List[RunPhase] = [RunPhase.IDLE]
        self.error: Optional[BaseException] = None

    async def run(self) -> NavigationResult:
        state: Optional[SessionState] = None
        try:
            self._enter(RunPhase.LAUNCHING)
            state = await self.session_manager.start(SessionConfig.for_options(self.options))

            self._enter(RunPhase.CONFIGURING)
            await self._configure(state)

            self._enter(RunPhase.NAVIGATING)
            response = await self._navigate(state)

            self._enter(RunPhase.EXTRACTING)
            result = await self._extract(state, response)

            self._enter(RunPhase.DONE)
            self.sink.write_line(result.html)
            return result
        except Exception as e:
            self.error = e
            self._enter(RunPhase.FAILED)
            raise
        finally:
            await self.interceptor.detach()
            if state is not None:
                await self._stop_tracing(state, best_effort=True)
                await self.session_manager.shutdown(state)

    async def _configure(self, state: SessionState) -> None:
        page = state.page
        await self.interceptor.attach(page)

        if self.options.cookies:
            try:
                await state.browser_context.add_cookies(
                    [cookie.to_playwright() for cookie in self.options.cookies]
                )
            except PlaywrightError as e:
                raise NavigationError(f"Failed to inject cookies: {e}") from e

        headers = self.policy.page_headers()
        try:
            await page.set_extra_http_headers(headers)
        except PlaywrightError as e:
            raise NavigationError(f"Failed to set extra headers: {e}") from e

        if self.options.trace_path:
            try:
                await state.browser_context.tracing.start(screenshots=True, snapshots=True)
            except PlaywrightError as e:
                raise NavigationError(f"Failed to start tracing: {e}") from e
            state.tracing = True

    async def _navigate(self, state: SessionState) -> Any:
        url = self.options.url
        try:
            return await state.page.goto(
                url,
                wait_until=self.options.wait_until.playwright_value,
                timeout=self.options.max_time_ms,
            )
        except PlaywrightTimeoutError as e:
            raise NavigationTimeoutError(url, self.options.max_time_ms) from e
        except PlaywrightError as e:
            raise NavigationError(f"Navigation to {url} failed: {e}") from e

    async def _extract(self, state: SessionState, response: Any) -> NavigationResult:
        await self._stop_tracing(state)

        result = NavigationResult(html="")
        if response is not None:
            result.status = response.status
            result.status_text = str(getattr(response, "status_text", "") or "")
            result.headers = await self._response_headers(response)
        elif self.options.echo_response_headers:
            self.logger.warning("No response received for %s", self.options.url)

        if self.options.echo_response_headers and response is not None:
            self.sink.write_lines(self._response_echo_lines(result))

        try:
            result.html = await state.page.content()
        except PlaywrightError as e:
            raise NavigationError(f"Failed to read page content: {e}") from e
        return result

    async def _stop_tracing(self, state: SessionState, best_effort: bool = False) -> None:
        if not state.tracing:
            return
        state.tracing = False
        try:
            await state.browser_context.tracing.stop(path=self.options.trace_path)
        except Exception as e:
            if not best_effort:
                raise NavigationError(f"Failed to write trace {self.options.trace_path}: {e}") from e
            self.logger.warning("Failed to stop tracing: %s", e)

    @staticmethod
    async def _response_headers(response: Any) -> Dict[str, str]:
        try:
            return dict(await response.all_headers())
        except Exception:
            return dict(getattr(response, "headers", {}) or {})

    @staticmethod
    def _response_echo_lines(result: NavigationResult) -> List[str]:
        status_line = f"< {result.status} {result.status_text}".rstrip()
        return [status_line] + format_header_lines(result.headers, "<")

    def _enter(self, phase: RunPhase) -> None:
        self.phase = phase
        self.history.append(phase)
        self.logger.debug("domcurl %s: %s", phase.value, self.options.url)


async def fetch(
    options: NavigationOptions,
    *,
    sink: Optional[OutputSink] = None,
    session_manager: Optional[BrowserSessionManager] = None,
    logger: Any = None,
) -> NavigationResult:
    """Run one navigation and return its result."""
    driver = NavigationDriver(
        options=options,
        sink=sink,
        session_manager=session_manager,
        logger=logger,
    )
    return await driver.run()


__all__ = ["NavigationDriver", "RunPhase", "fetch"]
