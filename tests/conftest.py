"""Shared fixtures: wired-up services and a test client."""
import pytest
from fastapi.testclient import TestClient

from twivideo_shorts.dependencies import (
    get_browser_session,
    get_listing_fetcher,
    get_media_proxy,
    get_static_root,
)
from twivideo_shorts.main import app
from twivideo_shorts.services import ListingFetcher

from helpers import FakePage, make_session


@pytest.fixture
def fake_page():
    """A page sitting on the daily ranking."""
    return FakePage()


@pytest.fixture
def ready_session(fake_page):
    """A session that already passed the challenge."""
    return make_session(fake_page)


@pytest.fixture
def fetcher(ready_session):
    """A listing fetcher that does not pause between retries."""
    return ListingFetcher(ready_session, retry_settle_seconds=0)


@pytest.fixture
def client():
    """Create a test client; dependency overrides are cleared afterwards."""
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def override():
    """Override the services handed to route handlers."""

    def _override(session=None, fetcher=None, proxy=None, static_root=None):
        if session is not None:
            app.dependency_overrides[get_browser_session] = lambda: session
        if fetcher is not None:
            app.dependency_overrides[get_listing_fetcher] = lambda: fetcher
        if proxy is not None:
            app.dependency_overrides[get_media_proxy] = lambda: proxy
        if static_root is not None:
            app.dependency_overrides[get_static_root] = lambda: static_root

    yield _override
    app.dependency_overrides.clear()
