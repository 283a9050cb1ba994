"""Streaming reverse proxy for media hosted on the Twitter/X CDN."""
from typing import AsyncIterator, Dict, Optional
from urllib.parse import urljoin, urlparse

import httpx
from fastapi.responses import StreamingResponse

from ..site import ALLOWED_MEDIA_HOSTS, MEDIA_ORIGIN, MEDIA_REFERER, USER_AGENT
from ..utils.logger import logger

UPSTREAM_TIMEOUT = 30.0
MAX_REDIRECTS = 5
CACHE_CONTROL = "public, max-age=3600"

MIRRORED_HEADERS = ("content-length", "content-range", "accept-ranges")


class MediaProxyError(Exception):
    """A proxy request failed before any response bytes were sent."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def is_allowed_host(hostname: Optional[str]) -> bool:
    """Check a hostname against the allow-list, subdomains included."""
    if not hostname:
        return False
    hostname = hostname.lower().rstrip(".")
    return any(
        hostname == allowed or hostname.endswith("." + allowed)
        for allowed in ALLOWED_MEDIA_HOSTS
    )


def validate_target(target_url: Optional[str]) -> str:
    """Validate a client-supplied media URL.

    Raises:
        MediaProxyError: 400 if the URL is missing, not http(s), or not on an
            allowed host
    """
    if not target_url:
        raise MediaProxyError(400, "Bad Request")

    parsed = urlparse(target_url)
    if parsed.scheme not in ("http", "https") or not is_allowed_host(parsed.hostname):
        raise MediaProxyError(400, "Bad Request")

    return target_url


class MediaProxy:
    """Relays media bytes from allow-listed hosts without buffering them."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = UPSTREAM_TIMEOUT,
        max_redirects: int = MAX_REDIRECTS,
    ):
        """Initialize the media proxy.

        Args:
            client: HTTP client to use. One is created on first use if omitted
            timeout: Upstream connect/read timeout in seconds
            max_redirects: Redirects followed before failing with 502
        """
        self.timeout = timeout
        self.max_redirects = max_redirects
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=False,
                headers={"User-Agent": USER_AGENT},
            )
        return self._client

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def stream_media(
        self, target_url: Optional[str], range_header: Optional[str] = None
    ) -> StreamingResponse:
        """Open the upstream media and stream it back to the client.

        Args:
            target_url: Media URL supplied by the client
            range_header: Client's Range header, forwarded upstream

        Returns:
            Streaming response mirroring the upstream status and media headers

        Raises:
            MediaProxyError: 400 for a rejected target, 502 for upstream
                errors or too many redirects, 504 for upstream timeouts
        """
        url = validate_target(target_url)
        upstream = await self._open_upstream(url, range_header)

        return StreamingResponse(
            self._relay(upstream),
            status_code=upstream.status_code,
            headers=self._response_headers(upstream),
        )

    async def _open_upstream(self, url: str, range_header: Optional[str]) -> httpx.Response:
        """Send the upstream request, following redirects up to the limit."""
        headers = {
            "User-Agent": USER_AGENT,
            "Referer": MEDIA_REFERER,
            "Origin": MEDIA_ORIGIN,
            # Relayed bytes are passed through undecoded
            "Accept-Encoding": "identity",
        }
        if range_header:
            headers["Range"] = range_header

        for hop in range(self.max_redirects + 1):
            try:
                request = self.client.build_request("GET", url, headers=headers)
                response = await self.client.send(request, stream=True)
            except httpx.TimeoutException as e:
                logger.error(f"[Proxy] Timeout fetching {url}: {e}")
                raise MediaProxyError(504, "Timeout") from e
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                logger.error(f"[Proxy] Error fetching {url}: {e}")
                raise MediaProxyError(502, "Proxy Error") from e

            location = response.headers.get("location")
            if 300 <= response.status_code < 400 and location:
                await response.aclose()
                next_url = urljoin(str(response.url), location)
                parsed = urlparse(next_url)
                if parsed.scheme not in ("http", "https") or not is_allowed_host(parsed.hostname):
                    logger.error(f"[Proxy] Refusing redirect from {url} to {next_url}")
                    raise MediaProxyError(502, "Proxy Error")
                logger.debug(f"[Proxy] Redirect {hop + 1}: {url} -> {next_url}")
                url = next_url
                continue

            return response

        logger.error(f"[Proxy] Too many redirects (>{self.max_redirects}) for {url}")
        raise MediaProxyError(502, "Too many redirects")

    @staticmethod
    def _response_headers(upstream: httpx.Response) -> Dict[str, str]:
        headers = {
            "Content-Type": upstream.headers.get("content-type", "application/octet-stream"),
            "Access-Control-Allow-Origin": "*",
            "Cache-Control": CACHE_CONTROL,
        }
        for name in MIRRORED_HEADERS:
            value = upstream.headers.get(name)
            if value:
                headers[name.title()] = value
        return headers

    @staticmethod
    async def _relay(upstream: httpx.Response) -> AsyncIterator[bytes]:
        # Closing here also aborts the upstream when the client disconnects
        try:
            async for chunk in upstream.aiter_raw():
                yield chunk
        except httpx.HTTPError as e:
            logger.error(f"[Proxy] Upstream error mid-stream for {upstream.url}: {e}")
        finally:
            await upstream.aclose()


# Global media proxy instance
media_proxy = MediaProxy()
