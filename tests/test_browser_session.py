"""Tests for the browser session controller."""
import asyncio
from unittest.mock import AsyncMock

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from twivideo_shorts.models import Readiness, SessionPhase
from twivideo_shorts.services import BrowserNotFoundError, BrowserSession
from twivideo_shorts.services.browser_session import is_session_closed_error
from twivideo_shorts.site import RANKING_URL

from helpers import FakeBrowser, FakePage, make_session


def install_fake_launch(session: BrowserSession, page: FakePage) -> dict:
    """Replace the Playwright launch with one that hands out `page`."""
    calls = {"count": 0}

    async def fake_launch():
        calls["count"] += 1
        await asyncio.sleep(0)
        session._browser = FakeBrowser()
        session._page = page
        return page

    session._launch = fake_launch
    return calls


class TestSessionInit:
    """Tests for bringing the session to a ready state."""

    @pytest.mark.asyncio
    async def test_init_without_challenge_is_confirmed(self):
        page = FakePage(url="about:blank")
        session = make_session(ready=False)
        install_fake_launch(session, page)

        readiness = await session.init()

        assert readiness == Readiness.READY_CONFIRMED
        assert session.phase == SessionPhase.READY
        assert session.is_ready()
        assert page.goto_calls == [RANKING_URL]
        assert page.wait_calls == 0

    @pytest.mark.asyncio
    async def test_init_waits_out_challenge(self):
        page = FakePage(url="about:blank", title="Just a moment...")
        session = make_session(ready=False)
        install_fake_launch(session, page)

        readiness = await session.init()

        assert readiness == Readiness.READY_CONFIRMED
        assert page.wait_calls == 1
        assert page.goto_calls == [RANKING_URL]

    @pytest.mark.asyncio
    async def test_pending_challenge_retries_once_then_degrades(self):
        page = FakePage(url="about:blank", title="Just a moment...", listing_count=0)
        page.challenge_clears = False
        session = make_session(ready=False)
        install_fake_launch(session, page)

        readiness = await session.init()

        # One retry cycle: a second navigation and a second wait
        assert page.goto_calls == [RANKING_URL, RANKING_URL]
        assert page.wait_calls == 2
        assert readiness == Readiness.READY_UNCONFIRMED
        assert session.is_ready()

    @pytest.mark.asyncio
    async def test_navigation_timeout_is_not_fatal(self):
        page = FakePage(url="about:blank")
        page.goto_error = PlaywrightTimeoutError("Timeout 60000ms exceeded.")
        session = make_session(ready=False)
        install_fake_launch(session, page)

        readiness = await session.init()

        assert readiness == Readiness.READY_CONFIRMED
        assert session.is_ready()

    @pytest.mark.asyncio
    async def test_closed_target_during_navigation_fails_init(self):
        page = FakePage(url="about:blank")
        page.goto_error = PlaywrightError("Target page, context or browser has been closed")
        session = make_session(ready=False)
        install_fake_launch(session, page)

        with pytest.raises(PlaywrightError):
            await session.init()

        assert session.phase == SessionPhase.UNINITIALIZED
        assert session.readiness == Readiness.NOT_READY

    @pytest.mark.asyncio
    async def test_launch_failure_propagates(self):
        session = make_session(ready=False)

        async def failing_launch():
            raise BrowserNotFoundError("no browser")

        session._launch = failing_launch

        with pytest.raises(BrowserNotFoundError):
            await session.init()

        assert session.phase == SessionPhase.UNINITIALIZED
        assert not session.is_ready()

    @pytest.mark.asyncio
    async def test_concurrent_init_launches_once(self):
        page = FakePage(url="about:blank")
        session = make_session(ready=False)
        calls = install_fake_launch(session, page)

        await asyncio.gather(session.init(), session.init(), session.init())

        assert calls["count"] == 1
        assert session.is_ready()

    @pytest.mark.asyncio
    async def test_init_on_ready_session_is_noop(self, fake_page):
        session = make_session(fake_page)
        calls = install_fake_launch(session, fake_page)

        assert await session.init() == Readiness.READY_CONFIRMED
        assert calls["count"] == 0


class TestBackgroundInit:
    """Tests for scheduling initialization off the request path."""

    @pytest.mark.asyncio
    async def test_failed_background_init_is_logged_not_raised(self):
        session = make_session(ready=False)
        session.init = AsyncMock(side_effect=BrowserNotFoundError("no browser"))

        task = session.schedule_init()
        await task

        session.init.assert_awaited_once()
        assert session.phase == SessionPhase.UNINITIALIZED

    @pytest.mark.asyncio
    async def test_schedule_init_reuses_running_task(self):
        session = make_session(ready=False)
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_init():
            started.set()
            await release.wait()

        session.init = slow_init

        first = session.schedule_init()
        await started.wait()
        second = session.schedule_init()
        release.set()
        await first

        assert first is second

    @pytest.mark.asyncio
    async def test_recent_failure_blocks_new_attempt(self):
        session = make_session(ready=False)
        session.init = AsyncMock(side_effect=BrowserNotFoundError("no browser"))

        await session.schedule_init()

        assert session.schedule_init() is None
        session.init.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_retry_allowed_after_interval(self):
        session = make_session(ready=False)
        session.reinit_interval = 0
        session.init = AsyncMock(side_effect=BrowserNotFoundError("no browser"))

        await session.schedule_init()
        second = session.schedule_init()
        await second

        assert second is not None
        assert session.init.await_count == 2

    @pytest.mark.asyncio
    async def test_schedule_init_skipped_when_ready(self, ready_session):
        assert ready_session.schedule_init() is None


class TestLivenessRecovery:
    """Tests for dropping a dead session."""

    @pytest.mark.parametrize(
        "message",
        [
            "Target closed",
            "Protocol error (Runtime.callFunctionOn): Session closed.",
            "Target page, context or browser has been closed",
        ],
    )
    def test_session_closed_errors(self, message):
        assert is_session_closed_error(PlaywrightError(message))

    def test_other_errors_are_not_fatal(self):
        assert not is_session_closed_error(PlaywrightError("net::ERR_CONNECTION_RESET"))

    @pytest.mark.asyncio
    async def test_closed_error_invalidates_session(self, ready_session):
        browser = ready_session._browser

        invalidated = await ready_session.handle_automation_error(PlaywrightError("Target closed"))

        assert invalidated
        assert not ready_session.is_ready()
        assert ready_session.phase == SessionPhase.UNINITIALIZED
        assert not ready_session.has_browser
        assert not ready_session.has_page
        assert browser.close_calls == 1

    @pytest.mark.asyncio
    async def test_other_error_keeps_session(self, ready_session):
        invalidated = await ready_session.handle_automation_error(PlaywrightError("net::ERR_FAILED"))

        assert not invalidated
        assert ready_session.is_ready()

    @pytest.mark.asyncio
    async def test_close_tears_down(self, ready_session):
        browser = ready_session._browser

        await ready_session.close()

        assert browser.close_calls == 1
        assert not ready_session.is_ready()
        assert not ready_session.has_page


class TestStatusSnapshot:
    """Tests for the status snapshot."""

    @pytest.mark.asyncio
    async def test_status_of_uninitialized_session(self):
        session = make_session(ready=False)

        snapshot = await session.status()

        assert snapshot["browser_ready"] is False
        assert snapshot["readiness"] == Readiness.NOT_READY
        assert snapshot["has_browser"] is False
        assert snapshot["has_page"] is False
        assert "page_title" not in snapshot
        assert "timestamp" in snapshot

    @pytest.mark.asyncio
    async def test_status_of_ready_session(self, ready_session):
        snapshot = await ready_session.status()

        assert snapshot["browser_ready"] is True
        assert snapshot["has_browser"] is True
        assert snapshot["has_page"] is True
        assert snapshot["page_title"] == "ツイビデオ ランキング"
        assert snapshot["video_count"] == 2

    @pytest.mark.asyncio
    async def test_status_reports_inspection_error(self, fake_page, ready_session):
        fake_page.title_error = PlaywrightError("Execution context was destroyed")

        snapshot = await ready_session.status()

        assert "Execution context was destroyed" in snapshot["error"]
        assert snapshot["browser_ready"] is True
