"""Fetch ranking listings through the browser session."""
import asyncio
from typing import Optional

from playwright.async_api import Error as PlaywrightError, Page

from ..models import ListingRequest
from ..site import LISTING_ENDPOINT, build_listing_form, sort_page_url
from ..utils.logger import logger
from .browser_session import (
    RENAVIGATION_TIMEOUT,
    BrowserSession,
    SessionNotReadyError,
    browser_session,
)
from .listing_markup import is_challenge_page

# Pause after re-navigating past a challenge before trying again
RETRY_SETTLE_SECONDS = 5.0

# Runs inside the page so the request carries the session's cookies
IN_CONTEXT_FETCH = """
async ({ endpoint, body }) => {
    const resp = await fetch(endpoint, {
        method: 'POST',
        headers: { 'Content-Type': 'application/x-www-form-urlencoded' },
        body,
    });
    return await resp.text();
}
"""


class ListingFetchError(RuntimeError):
    """A listing could not be fetched through the browser session."""


class ListingFetcher:
    """Fetches one page of ranking results from inside the browser page."""

    def __init__(
        self,
        session: Optional[BrowserSession] = None,
        retry_settle_seconds: float = RETRY_SETTLE_SECONDS,
    ):
        """Initialize the listing fetcher.

        Args:
            session: Browser session to use. Defaults to the global browser_session
            retry_settle_seconds: Pause after re-navigating past a challenge
        """
        self.session = session or browser_session
        self.retry_settle_seconds = retry_settle_seconds

    async def fetch_listing(self, request: ListingRequest) -> str:
        """Fetch one page of ranking markup.

        Offset 0 returns the sort page's own markup. Other offsets POST to the
        listing endpoint from inside the page. If the result is a challenge
        page, the session re-navigates once and tries again; the second result
        is returned as-is.

        Args:
            request: Sort order and pagination

        Returns:
            Raw markup from the remote site

        Raises:
            SessionNotReadyError: If the session cannot be initialized
            ListingFetchError: If an automation call fails
        """
        if not self.session.is_ready():
            await self.session.init()
            if not self.session.is_ready():
                raise SessionNotReadyError("Browser not ready")

        async with self.session.lock:
            try:
                page = self.session.page
                html = await self._fetch_once(page, request)

                if is_challenge_page(html):
                    logger.info("[API] Got bot challenge in response, re-navigating...")
                    await self._navigate_to_sort(page, request, force=True)
                    if self.retry_settle_seconds:
                        await asyncio.sleep(self.retry_settle_seconds)

                    if request.offset == 0:
                        html = await page.content()
                    else:
                        html = await self._request_in_context(page, request)

                return html

            except PlaywrightError as e:
                logger.error(
                    f"[API] Browser evaluation failed (sort={request.sort.value} "
                    f"offset={request.offset} limit={request.limit}): {e}"
                )
                await self.session.handle_automation_error(e)
                raise ListingFetchError(str(e)) from e

    async def _fetch_once(self, page: Page, request: ListingRequest) -> str:
        if request.offset == 0:
            await self._navigate_to_sort(page, request)
            return await page.content()
        return await self._request_in_context(page, request)

    async def _navigate_to_sort(
        self, page: Page, request: ListingRequest, force: bool = False
    ) -> None:
        url = sort_page_url(request.sort)
        if not force and page.url == url:
            return
        await self.session.navigate(page, url, RENAVIGATION_TIMEOUT)

    async def _request_in_context(self, page: Page, request: ListingRequest) -> str:
        body = build_listing_form(request.sort, request.offset, request.limit)
        return await page.evaluate(
            IN_CONTEXT_FETCH, {"endpoint": LISTING_ENDPOINT, "body": body}
        )


# Global listing fetcher instance
listing_fetcher = ListingFetcher()
