"""Helpers for inspecting ranking markup returned by the remote site."""
from typing import List

from bs4 import BeautifulSoup

from ..models import ListingItem
from ..site import CHALLENGE_MARKER, LISTING_ITEM_SELECTOR
from ..utils.logger import logger


def is_challenge_page(html: str) -> bool:
    """Check whether markup is the bot-challenge interstitial."""
    return bool(html) and CHALLENGE_MARKER in html


def count_listing_items(html: str) -> int:
    """Count ranking entries in a full page or a listing fragment."""
    if not html:
        return 0
    soup = BeautifulSoup(html, "lxml")
    return len(soup.select(LISTING_ITEM_SELECTOR))


def parse_listing_items(html: str) -> List[ListingItem]:
    """Parse ranking entries out of listing markup.

    Entries without a video link or thumbnail are skipped. Rank falls back
    to the entry's position when the page carries no rank label.

    Args:
        html: Page markup or a listing endpoint fragment

    Returns:
        Parsed items in page order
    """
    if not html:
        return []

    soup = BeautifulSoup(f"<div>{html}</div>", "lxml")
    items: List[ListingItem] = []

    for index, entry in enumerate(soup.select(LISTING_ITEM_SELECTOR), start=1):
        link = entry.select_one("a.item_link")
        img = entry.select_one("img")
        if link is None or img is None:
            continue

        rank_el = entry.select_one(".item_ranking")
        rank = rank_el.get_text(strip=True) if rank_el else f"No.{index}"

        items.append(
            ListingItem(
                id=link.get("data-id") or "",
                video_url=link.get("href") or "",
                thumb_url=img.get("src") or "",
                rank=rank,
                rank_num=index,
            )
        )

    logger.debug(f"Parsed {len(items)} listing items")
    return items
