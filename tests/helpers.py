"""Fake Playwright objects and builders shared by the tests."""
import asyncio
from typing import Callable, List, Optional

import httpx
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from twivideo_shorts.models import Readiness, SessionPhase
from twivideo_shorts.services import BrowserSession, MediaProxy
from twivideo_shorts.site import RANKING_URL


RANKING_HTML = """
<html><head><title>ツイビデオ ランキング</title></head><body>
<ul>
  <li class="art_li">
    <a class="item_link" href="https://video.twimg.com/ext_tw_video/1/pu/vid/a.mp4" data-id="111">
      <img src="https://pbs.twimg.com/ext_tw_video_thumb/1/pu/img/a.jpg">
    </a>
    <span class="item_ranking">1位</span>
  </li>
  <li class="art_li">
    <a class="item_link" href="https://video.twimg.com/ext_tw_video/2/pu/vid/b.mp4" data-id="222">
      <img src="https://pbs.twimg.com/ext_tw_video_thumb/2/pu/img/b.jpg">
    </a>
  </li>
</ul>
</body></html>
"""

CHALLENGE_HTML = "<html><head><title>Just a moment...</title></head><body></body></html>"


class FakeLocator:
    """Stands in for a Playwright locator."""

    def __init__(self, page: "FakePage", selector: str):
        self.page = page
        self.selector = selector

    async def count(self) -> int:
        return self.page.listing_count


class FakePage:
    """Records the automation calls made against a Playwright page."""

    def __init__(
        self,
        url: str = RANKING_URL,
        title: str = "ツイビデオ ランキング",
        html: str = RANKING_HTML,
        listing_count: int = 2,
    ):
        self.url = url
        self._title = title
        self.html = html
        self.listing_count = listing_count
        self.challenge_clears = True
        self.closed = False

        self.goto_calls: List[str] = []
        self.goto_error: Optional[Exception] = None
        self.evaluate_calls: List[dict] = []
        self.evaluate_results: List[str] = []
        self.evaluate_error: Optional[Exception] = None
        self.title_error: Optional[Exception] = None
        self.wait_calls = 0

        self.active_calls = 0
        self.max_active_calls = 0

    async def goto(self, url, wait_until=None, timeout=None):
        self.goto_calls.append(url)
        self.url = url
        if self.goto_error is not None:
            raise self.goto_error

    async def title(self) -> str:
        if self.title_error is not None:
            raise self.title_error
        return self._title

    async def content(self) -> str:
        return self.html

    async def evaluate(self, expression, arg=None):
        self.evaluate_calls.append(arg)
        self.active_calls += 1
        self.max_active_calls = max(self.max_active_calls, self.active_calls)
        try:
            await asyncio.sleep(0.01)
            if self.evaluate_error is not None:
                raise self.evaluate_error
            return self.evaluate_results.pop(0)
        finally:
            self.active_calls -= 1

    async def wait_for_function(self, expression, arg=None, timeout=None):
        self.wait_calls += 1
        if not self.challenge_clears:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")
        self._title = "ツイビデオ ランキング"

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    def is_closed(self) -> bool:
        return self.closed


class FakeBrowser:
    """Stands in for a Playwright browser."""

    def __init__(self):
        self.connected = True
        self.close_calls = 0

    def is_connected(self) -> bool:
        return self.connected

    async def close(self):
        self.close_calls += 1
        self.connected = False


class ScriptedStream(httpx.AsyncByteStream):
    """Upstream body that yields `chunks`, then raises `error` if given."""

    def __init__(self, chunks: List[bytes], error: Optional[Exception] = None):
        self.chunks = chunks
        self.error = error
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    async def aclose(self):
        self.closed = True


class EndlessStream(httpx.AsyncByteStream):
    """Upstream body that never finishes."""

    def __init__(self, chunk: bytes = b"\x00" * 1024):
        self.chunk = chunk
        self.closed = False

    async def __aiter__(self):
        while not self.closed:
            await asyncio.sleep(0)
            yield self.chunk

    async def aclose(self):
        self.closed = True


def make_session(page: Optional[FakePage] = None, ready: bool = True) -> BrowserSession:
    """Build a BrowserSession around fake Playwright objects."""
    session = BrowserSession(executable_path="/fake/chrome", settle_seconds=0)
    if page is not None:
        session._page = page
        session._browser = FakeBrowser()
    if ready:
        session.phase = SessionPhase.READY
        session.readiness = Readiness.READY_CONFIRMED
    return session


def make_media_proxy(handler: Callable[[httpx.Request], httpx.Response]) -> MediaProxy:
    """Build a MediaProxy whose upstream is a mock transport."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=False)
    return MediaProxy(client=client)
