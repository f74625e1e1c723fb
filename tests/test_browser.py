from __future__ import annotations

import asyncio

import pytest

from portal_fakes import FakeBrowser, FakeContext, FakePage
from ssotica_receivables.errors import ResourceUnavailableError
from ssotica_receivables.portal.browser import BrowserManager


def _manager_with(browser: FakeBrowser) -> BrowserManager:
    m = BrowserManager()
    m._browser = browser  # type: ignore[assignment]
    return m


def test_not_started_is_not_ready_and_refuses_contexts() -> None:
    m = BrowserManager()
    assert m.is_ready is False
    with pytest.raises(ResourceUnavailableError) as ei:
        asyncio.run(m.acquire())
    assert ei.value.status_code == 503


def test_disconnected_browser_is_not_ready() -> None:
    browser = FakeBrowser()
    m = _manager_with(browser)
    assert m.is_ready is True

    browser.connected = False
    assert m.is_ready is False
    with pytest.raises(ResourceUnavailableError):
        asyncio.run(m.acquire())


def test_each_session_gets_its_own_context_and_closes_it() -> None:
    browser = FakeBrowser()
    m = _manager_with(browser)

    async def one() -> FakeContext:
        async with m.session() as ctx:
            await asyncio.sleep(0)
            return ctx

    async def run():
        return await asyncio.gather(one(), one(), one())

    contexts = asyncio.run(run())
    assert len({id(c) for c in contexts}) == 3
    assert len({id(c.page) for c in contexts}) == 3
    assert [c.closed for c in browser.contexts] == [1, 1, 1]


def test_session_closes_context_when_body_raises() -> None:
    browser = FakeBrowser()
    m = _manager_with(browser)

    async def run():
        async with m.session():
            raise ValueError("portal exploded")

    with pytest.raises(ValueError):
        asyncio.run(run())
    assert browser.contexts[0].closed == 1


def test_release_ignores_close_errors() -> None:
    m = BrowserManager()
    ctx = FakeContext(FakePage(), close_error=RuntimeError("already gone"))
    asyncio.run(m.release(ctx))  # type: ignore[arg-type]
    assert ctx.closed == 1


def test_stop_is_idempotent() -> None:
    browser = FakeBrowser()
    m = _manager_with(browser)

    asyncio.run(m.stop())
    asyncio.run(m.stop())

    assert browser.closed is True
    assert m.is_ready is False


class _DyingBrowser(FakeBrowser):
    def __init__(self, *, disconnect: bool) -> None:
        super().__init__()
        self.disconnect = disconnect

    async def new_context(self, **kwargs):
        if self.disconnect:
            self.connected = False
        raise RuntimeError("Browser has been closed")


def test_browser_lost_during_acquire_is_unavailable() -> None:
    m = _manager_with(_DyingBrowser(disconnect=True))
    with pytest.raises(ResourceUnavailableError) as ei:
        asyncio.run(m.acquire())
    assert ei.value.status_code == 503
    assert "Browser has been closed" in ei.value.detail


def test_context_error_on_live_browser_propagates() -> None:
    m = _manager_with(_DyingBrowser(disconnect=False))
    with pytest.raises(RuntimeError) as ei:
        asyncio.run(m.acquire())
    assert not isinstance(ei.value, ResourceUnavailableError)
