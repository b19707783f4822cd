"""Playwright session lifecycle."""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

from .errors import LaunchError
from .models import SessionConfig, SessionState

try:
    from playwright.async_api import async_playwright
except Exception:
    async_playwright = None  # type: ignore


class BrowserSessionManager:
    """Manage Playwright browser/context/page lifecycle for one run."""

    def __init__(self, browser_type: str = "chromium"):
        self.browser_type = str(browser_type or "chromium")

    async def start(self, config: SessionConfig) -> SessionState:
        if async_playwright is None:
            raise LaunchError(
                "Playwright is not available. Install with: pip install playwright "
                "and install browser binaries."
            )

        state = SessionState()
        try:
            pw = await async_playwright().start()
        except Exception as e:
            raise LaunchError(f"Failed to start Playwright: {e}") from e
        state.playwright = pw

        try:
            launcher = getattr(pw, self.browser_type)
            state.browser = await launcher.launch(
                headless=bool(config.headless),
                args=list(config.launch_args),
            )
            context = await state.browser.new_context(**self._context_kwargs(config))
            state.browser_context = context
            context.set_default_timeout(float(config.timeout_ms))
            context.set_default_navigation_timeout(float(config.timeout_ms))
            page = await context.new_page()
        except Exception as e:
            await self.shutdown(state)
            raise LaunchError(f"Failed to launch {self.browser_type}: {e}") from e

        page.set_default_timeout(float(config.timeout_ms))
        page.set_default_navigation_timeout(float(config.timeout_ms))

        state.page = page
        state.active = True
        state.started_at = time.time()
        return state

    async def shutdown(self, state: Optional[SessionState]) -> None:
        if state is None:
            return

        try:
            if state.browser_context is not None:
                await state.browser_context.close()
        except Exception:
            pass

        try:
            if state.browser is not None:
                await state.browser.close()
        except Exception:
            pass

        try:
            if state.playwright is not None:
                await state.playwright.stop()
        except Exception:
            pass

        state.mark_closed()

    @staticmethod
    def _context_kwargs(config: SessionConfig) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {}
        if config.user_agent:
            kwargs["user_agent"] = config.user_agent
        if config.viewport is not None:
            kwargs["viewport"] = config.viewport.as_dict()
        return kwargs
