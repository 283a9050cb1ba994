"""Listing request and item models."""
from enum import Enum

from pydantic import BaseModel, Field


class SortOrder(str, Enum):
    """Ranking window, using the values the remote site expects in `order`."""

    DAILY = "24"
    WEEKLY = "7"
    MONTHLY = "30"


class ListingRequest(BaseModel):
    """One page of ranking results."""

    sort: SortOrder = Field(default=SortOrder.DAILY, description="Ranking window")
    offset: int = Field(default=0, ge=0, description="Pagination offset")
    limit: int = Field(default=30, gt=0, description="Page size")

    class Config:
        json_schema_extra = {
            "example": {
                "sort": "7",
                "offset": 30,
                "limit": 30,
            }
        }


class ListingItem(BaseModel):
    """A single entry parsed out of listing markup."""

    id: str = ""
    video_url: str
    thumb_url: str
    rank: str
    rank_num: int
