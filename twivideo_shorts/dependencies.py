"""FastAPI dependencies that hand the shared services to route handlers.

Tests swap these out through `app.dependency_overrides`.
"""
from pathlib import Path

from .config import settings
from .services import (
    BrowserSession,
    ListingFetcher,
    MediaProxy,
    browser_session,
    listing_fetcher,
    media_proxy,
)


def get_browser_session() -> BrowserSession:
    return browser_session


def get_listing_fetcher() -> ListingFetcher:
    return listing_fetcher


def get_media_proxy() -> MediaProxy:
    return media_proxy


def get_static_root() -> Path:
    return settings.static_path
