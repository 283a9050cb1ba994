"""Constants describing the remote ranking site and its media CDN.

The listing endpoint and its form fields are not documented by the site; they
mirror what the site's own ranking page sends. Keep every site-specific value
in this module so a change upstream only touches one place.
"""
from .models import SortOrder

BASE_URL = "https://twivideo.net"
RANKING_URL = f"{BASE_URL}/?ranking"
LISTING_ENDPOINT = f"{BASE_URL}/templates/view_lists.php"

SORT_PAGE_URLS = {
    SortOrder.DAILY: RANKING_URL,
    SortOrder.WEEKLY: f"{RANKING_URL}&sort=7",
    SortOrder.MONTHLY: f"{RANKING_URL}&sort=30",
}

# Title (and body) text of the bot-challenge interstitial
CHALLENGE_MARKER = "Just a moment"

# One ranking entry on the page or in a listing response
LISTING_ITEM_SELECTOR = ".art_li"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36"
)

# Media hosts the proxy may fetch from; subdomains are allowed too
ALLOWED_MEDIA_HOSTS = ("twimg.com", "twitter.com")
MEDIA_REFERER = "https://twitter.com/"
MEDIA_ORIGIN = "https://twitter.com"


def sort_page_url(sort: SortOrder) -> str:
    """Return the ranking page URL for a sort order."""
    return SORT_PAGE_URLS[SortOrder(sort)]


def build_listing_form(sort: SortOrder, offset: int, limit: int) -> str:
    """Build the form body the listing endpoint expects.

    `myarray=[]` is sent literally, unencoded, the same way the site does.
    """
    order = SortOrder(sort).value
    return (
        f"offset={offset}&limit={limit}&tag=null&type=ranking&order={order}"
        f"&le=1000&ty=p6&myarray=[]&offset_int={offset}"
    )
