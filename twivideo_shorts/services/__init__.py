"""Services for the application."""
from .browser_locator import BrowserNotFoundError, find_browser_executable
from .browser_session import BrowserSession, SessionNotReadyError, browser_session
from .listing_fetcher import ListingFetchError, ListingFetcher, listing_fetcher
from .media_proxy import MediaProxy, MediaProxyError, media_proxy

__all__ = [
    "BrowserNotFoundError",
    "find_browser_executable",
    "BrowserSession",
    "SessionNotReadyError",
    "browser_session",
    "ListingFetchError",
    "ListingFetcher",
    "listing_fetcher",
    "MediaProxy",
    "MediaProxyError",
    "media_proxy",
]
