from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright

from ..errors import ResourceUnavailableError


logger = logging.getLogger(__name__)


class BrowserManager:
    """
    Owns the one Chromium process shared by every request.

    The browser itself is only ever created by `start()` and closed by `stop()`. Requests get
    their own `BrowserContext` (cookies, storage and navigation state are per context), so two
    customer lookups running at the same time cannot see each other's portal session.
    """

    def __init__(self, *, headless: bool = True, slow_mo_ms: int = 0) -> None:
        self.headless = headless
        self.slow_mo_ms = int(slow_mo_ms or 0)
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    @property
    def is_ready(self) -> bool:
        if self._browser is None:
            return False
        try:
            return bool(self._browser.is_connected())
        except Exception:
            return False

    async def start(self) -> None:
        if self._browser is not None:
            return

        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._launch(self._playwright)
        except Exception:
            await self._playwright.stop()
            self._playwright = None
            raise
        logger.info("Browser started (headless=%s)", self.headless)

    async def _launch(self, p: Playwright) -> Browser:
        # Prefer Playwright's bundled Chromium, but fall back to a system-installed browser if the
        # container/cache doesn't have Playwright browsers available.
        try:
            return await p.chromium.launch(headless=self.headless, slow_mo=self.slow_mo_ms)
        except Exception as e:
            msg = str(e)
            if "Executable doesn't exist" not in msg:
                raise

            logger.warning(
                "Playwright Chromium executable missing; falling back to system browser channel. (%s)",
                msg,
            )
            try:
                return await p.chromium.launch(headless=self.headless, slow_mo=self.slow_mo_ms, channel="chrome")
            except Exception:
                return await p.chromium.launch(headless=self.headless, slow_mo=self.slow_mo_ms, channel="msedge")

    async def stop(self) -> None:
        browser, self._browser = self._browser, None
        pw, self._playwright = self._playwright, None
        if browser is not None:
            try:
                await browser.close()
            except Exception:
                logger.debug("Failed to close browser.", exc_info=True)
        if pw is not None:
            try:
                await pw.stop()
            except Exception:
                logger.debug("Failed to stop Playwright.", exc_info=True)
        if browser is not None:
            logger.info("Browser stopped")

    async def acquire(self) -> BrowserContext:
        if not self.is_ready:
            raise ResourceUnavailableError("browser not started or disconnected")
        assert self._browser is not None
        try:
            return await self._browser.new_context()
        except Exception as exc:
            # Browser went away between the readiness check and the call.
            if not self.is_ready:
                raise ResourceUnavailableError(f"browser disconnected: {exc}") from exc
            raise

    async def release(self, context: BrowserContext) -> None:
        try:
            await context.close()
        except Exception:
            logger.warning("Failed to close browser context; ignoring.", exc_info=True)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[BrowserContext]:
        """Isolated context for one request; always closed on the way out."""
        context = await self.acquire()
        try:
            yield context
        finally:
            await self.release(context)
