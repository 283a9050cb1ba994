"""Browser session that keeps a challenge-passed page open on the ranking site."""
import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from ..config import settings
from ..models import Readiness, SessionPhase
from ..site import CHALLENGE_MARKER, LISTING_ITEM_SELECTOR, RANKING_URL, USER_AGENT
from ..utils.logger import logger
from .browser_locator import find_browser_executable

# Timeouts in milliseconds
INITIAL_NAVIGATION_TIMEOUT = 60_000
RENAVIGATION_TIMEOUT = 30_000
CHALLENGE_TIMEOUT = 45_000

# Pause after the challenge wait so the ranking list can render
SETTLE_SECONDS = 3.0

# Minimum gap between a failed background init and the next attempt
REINIT_INTERVAL_SECONDS = 30.0

# Substrings of automation errors that mean the browser or page is gone
SESSION_CLOSED_MARKERS = ("target closed", "session closed", "has been closed")

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-blink-features=AutomationControlled",
    "--no-first-run",
    "--no-default-browser-check",
]

VIEWPORT = {"width": 1280, "height": 800}

EXTRA_HEADERS = {
    "Accept-Language": "ja,en-US;q=0.9,en;q=0.8",
}

STEALTH_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
Object.defineProperty(navigator, 'languages', { get: () => ['ja', 'en-US', 'en'] });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
window.chrome = window.chrome || { runtime: {} };
"""


class SessionNotReadyError(RuntimeError):
    """The browser session has not passed initialization."""


def is_session_closed_error(error: BaseException) -> bool:
    """Check whether an automation error means the session is dead."""
    message = str(error).lower()
    return any(marker in message for marker in SESSION_CLOSED_MARKERS)


class BrowserSession:
    """Owns the single Playwright browser and page used for the ranking site.

    Phases move UNINITIALIZED -> INITIALIZING -> READY, and back to
    UNINITIALIZED when an automation call reports the browser or page closed.
    Navigation and in-context requests must hold `lock`.
    """

    def __init__(
        self,
        executable_path: Optional[str] = None,
        headless: Optional[bool] = None,
        settle_seconds: float = SETTLE_SECONDS,
        reinit_interval: float = REINIT_INTERVAL_SECONDS,
    ):
        """Initialize the browser session.

        Args:
            executable_path: Browser executable. Defaults to settings.chrome_path
                with a search of common install locations
            headless: Run without a window. Defaults to settings.headless
            settle_seconds: Pause after the challenge wait
            reinit_interval: Seconds to wait after a failed background init
                before schedule_init tries again
        """
        self.executable_path = executable_path or settings.chrome_path
        self.headless = settings.headless if headless is None else headless
        self.settle_seconds = settle_seconds
        self.reinit_interval = reinit_interval

        self.phase = SessionPhase.UNINITIALIZED
        self.readiness = Readiness.NOT_READY
        self.lock = asyncio.Lock()

        self._init_lock = asyncio.Lock()
        self._init_task: Optional[asyncio.Task] = None
        self._last_init_failure: Optional[float] = None
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    @property
    def page(self) -> Page:
        """The live page.

        Raises:
            SessionNotReadyError: If no page is open
        """
        if self._page is None:
            raise SessionNotReadyError("Browser page is not available")
        return self._page

    @property
    def has_browser(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    @property
    def has_page(self) -> bool:
        return self._page is not None and not self._page.is_closed()

    def is_ready(self) -> bool:
        return self.phase == SessionPhase.READY and self.readiness.is_ready

    async def init(self) -> Readiness:
        """Launch the browser and bring it past the bot challenge.

        Concurrent callers share one initialization. An error leaves the
        session UNINITIALIZED and propagates.

        Returns:
            Readiness reached by the session
        """
        async with self._init_lock:
            if self.is_ready():
                return self.readiness

            self.phase = SessionPhase.INITIALIZING
            self.readiness = Readiness.NOT_READY
            try:
                await self._teardown()
                page = await self._launch()
                readiness = await self._bring_to_ready(page)
            except BaseException:
                self.phase = SessionPhase.UNINITIALIZED
                self.readiness = Readiness.NOT_READY
                raise

            self.readiness = readiness
            self.phase = SessionPhase.READY
            if readiness == Readiness.READY_CONFIRMED:
                logger.info("[Browser] Ready! Challenge passed")
            else:
                logger.warning("[Browser] Ready, but the ranking list was not found; serving best-effort")
            return readiness

    def schedule_init(self) -> Optional[asyncio.Task]:
        """Start initialization in the background unless already running.

        A failed background init blocks new attempts for `reinit_interval`
        seconds.

        Returns:
            The running init task, or None if the session is already ready
            or a recent attempt failed
        """
        if self._init_task is not None and not self._init_task.done():
            return self._init_task
        if self.is_ready():
            return None
        if self._last_init_failure is not None:
            elapsed = time.monotonic() - self._last_init_failure
            if elapsed < self.reinit_interval:
                logger.debug(f"[Browser] Init failed {elapsed:.1f}s ago, not retrying yet")
                return None

        self._init_task = asyncio.create_task(self._init_in_background())
        return self._init_task

    async def _init_in_background(self) -> None:
        try:
            await self.init()
        except Exception as e:
            self._last_init_failure = time.monotonic()
            logger.error(f"[FATAL] Browser init failed: {e}")
        else:
            self._last_init_failure = None

    async def _launch(self) -> Page:
        """Start Playwright, launch the browser and open a stealthed page."""
        logger.info("[Browser] Launching Chromium...")
        self._playwright = await async_playwright().start()

        executable = find_browser_executable(
            configured=self.executable_path,
            bundled=self._playwright.chromium.executable_path,
        )
        logger.info(f"[Browser] Using executable: {executable}")

        self._browser = await self._playwright.chromium.launch(
            executable_path=executable,
            headless=self.headless,
            args=LAUNCH_ARGS,
        )
        self._context = await self._browser.new_context(
            user_agent=USER_AGENT,
            viewport=VIEWPORT,
            extra_http_headers=EXTRA_HEADERS,
        )
        await self._context.add_init_script(STEALTH_SCRIPT)
        self._page = await self._context.new_page()
        return self._page

    async def _bring_to_ready(self, page: Page) -> Readiness:
        """Navigate to the ranking page and wait out the challenge.

        The bypass is best effort: if the challenge is still showing after one
        retry cycle, initialization continues and readiness stays unconfirmed.
        """
        logger.info("[Browser] Navigating to ranking page (bot challenge)...")
        await self.navigate(page, RANKING_URL, INITIAL_NAVIGATION_TIMEOUT)

        passed = await self.wait_out_challenge(page)
        if not passed:
            logger.info("[Browser] Challenge still pending, re-navigating once...")
            await self.navigate(page, RANKING_URL, RENAVIGATION_TIMEOUT)
            passed = await self.wait_out_challenge(page)
        if not passed:
            logger.warning("[Browser] Challenge may still be pending, continuing...")

        if self.settle_seconds:
            await asyncio.sleep(self.settle_seconds)

        count = await page.locator(LISTING_ITEM_SELECTOR).count()
        logger.info(f"[Browser] Page title: {await page.title()} ({count} listing items)")
        if count > 0:
            return Readiness.READY_CONFIRMED
        return Readiness.READY_UNCONFIRMED

    async def navigate(self, page: Page, url: str, timeout: int) -> None:
        """Navigate, tolerating load timeouts and ordinary navigation errors.

        Raises:
            PlaywrightError: If the error means the browser or page closed
        """
        try:
            await page.goto(url, wait_until="networkidle", timeout=timeout)
        except PlaywrightError as e:
            if is_session_closed_error(e):
                raise
            logger.warning(f"[Browser] Navigation timeout or error for {url}: {e}")

    async def wait_out_challenge(self, page: Page, timeout: int = CHALLENGE_TIMEOUT) -> bool:
        """Wait until the page title no longer shows the challenge marker.

        Returns:
            True if no challenge is showing when the wait ends
        """
        title = await page.title()
        if CHALLENGE_MARKER not in title:
            return True

        logger.info("[Browser] Waiting for bot challenge...")
        try:
            await page.wait_for_function(
                "marker => !document.title.includes(marker)",
                arg=CHALLENGE_MARKER,
                timeout=timeout,
            )
        except PlaywrightTimeoutError:
            logger.info("[Browser] Challenge wait timed out")
            return False
        return True

    async def handle_automation_error(self, error: BaseException) -> bool:
        """Invalidate the session if an error means it died.

        Returns:
            True if the session was invalidated
        """
        if not is_session_closed_error(error):
            return False
        await self.invalidate(str(error))
        return True

    async def invalidate(self, reason: str = "") -> None:
        """Drop the session so the next use re-initializes it."""
        logger.warning(f"[Browser] Session invalidated: {reason or 'no reason given'}")
        self.phase = SessionPhase.UNINITIALIZED
        self.readiness = Readiness.NOT_READY
        await self._teardown()

    async def close(self) -> None:
        """Close the browser on shutdown."""
        logger.info("[Shutdown] Closing browser...")
        if self._init_task is not None and not self._init_task.done():
            self._init_task.cancel()
        self.phase = SessionPhase.UNINITIALIZED
        self.readiness = Readiness.NOT_READY
        await self._teardown()

    async def _teardown(self) -> None:
        context, browser, playwright = self._context, self._browser, self._playwright
        self._page = None
        self._context = None
        self._browser = None
        self._playwright = None

        for name, closer in (
            ("context", context.close if context else None),
            ("browser", browser.close if browser else None),
            ("playwright", playwright.stop if playwright else None),
        ):
            if closer is None:
                continue
            try:
                await closer()
            except Exception as e:
                logger.debug(f"[Browser] Ignoring error while closing {name}: {e}")

    async def status(self) -> Dict[str, Any]:
        """Snapshot of the session for the status endpoint.

        Inspection errors are reported in the `error` key instead of raised.
        """
        snapshot: Dict[str, Any] = {
            "browser_ready": self.is_ready(),
            "readiness": self.readiness,
            "has_browser": self.has_browser,
            "has_page": self.has_page,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        if self.has_page:
            try:
                snapshot["page_title"] = await self._page.title()
                snapshot["video_count"] = await self._page.locator(LISTING_ITEM_SELECTOR).count()
            except PlaywrightError as e:
                snapshot["error"] = str(e)

        return snapshot


# Global browser session instance
browser_session = BrowserSession()
