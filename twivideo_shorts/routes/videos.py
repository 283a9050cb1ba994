"""Ranking listing API endpoints."""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

from ..dependencies import get_browser_session, get_listing_fetcher
from ..models import ListingRequest, SortOrder
from ..services import BrowserSession, ListingFetchError, ListingFetcher, SessionNotReadyError
from ..utils.logger import logger

router = APIRouter(prefix="/api", tags=["videos"])


@router.get("/videos", response_class=HTMLResponse)
async def get_videos(
    sort: SortOrder = Query(SortOrder.DAILY, description="Ranking window"),
    offset: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(30, gt=0, description="Page size"),
    session: BrowserSession = Depends(get_browser_session),
    fetcher: ListingFetcher = Depends(get_listing_fetcher),
) -> Response:
    """Fetch one page of ranking markup through the browser session.

    While the session is not ready this answers 503 without touching the
    browser, and starts a background initialization if none is running and
    no attempt failed recently.

    Args:
        sort: Ranking window
        offset: Pagination offset
        limit: Page size

    Returns:
        Raw ranking markup
    """
    if not session.is_ready():
        session.schedule_init()
        return PlainTextResponse("Browser still initializing...", status_code=503)

    request = ListingRequest(sort=sort, offset=offset, limit=limit)
    logger.info(f"[API] sort={sort.value} offset={offset} limit={limit}")

    try:
        html = await fetcher.fetch_listing(request)
    except SessionNotReadyError as e:
        logger.warning(f"[API] Session not ready for sort={sort.value} offset={offset}: {e}")
        return PlainTextResponse("Browser still initializing...", status_code=503)
    except ListingFetchError as e:
        logger.error(f"[API] Error for sort={sort.value} offset={offset} limit={limit}: {e}")
        return PlainTextResponse(f"Server Error: {e}", status_code=500)
    except Exception as e:
        logger.error(f"[API] Unexpected error for sort={sort.value} offset={offset}: {e}")
        return PlainTextResponse(f"Server Error: {e}", status_code=500)

    return HTMLResponse(html)
