"""TWIVIDEO Shorts ranking proxy."""
from .config import settings
from .models import ListingRequest, Readiness, SessionPhase, SortOrder
from .services import (
    BrowserSession,
    ListingFetcher,
    MediaProxy,
    browser_session,
    listing_fetcher,
    media_proxy,
)

__all__ = [
    "settings",
    "ListingRequest",
    "Readiness",
    "SessionPhase",
    "SortOrder",
    "BrowserSession",
    "ListingFetcher",
    "MediaProxy",
    "browser_session",
    "listing_fetcher",
    "media_proxy",
]
