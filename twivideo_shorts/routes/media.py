"""Media proxy endpoint."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse, Response

from ..dependencies import get_media_proxy
from ..services import MediaProxy, MediaProxyError
from ..utils.logger import logger

router = APIRouter(prefix="/proxy", tags=["media"])


@router.get("/media")
async def proxy_media(
    request: Request,
    url: Optional[str] = Query(None, description="Media URL on an allowed host"),
    proxy: MediaProxy = Depends(get_media_proxy),
) -> Response:
    """Stream a video or image from the Twitter/X CDN.

    Args:
        request: Incoming request, for its Range header
        url: Media URL to relay

    Returns:
        Streaming response with the upstream media
    """
    try:
        return await proxy.stream_media(url, range_header=request.headers.get("range"))
    except MediaProxyError as e:
        if e.status_code == 400:
            logger.warning(f"[Proxy] Rejected target: {url!r}")
        return PlainTextResponse(e.message, status_code=e.status_code)
