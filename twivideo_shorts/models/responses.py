"""Response models for API endpoints."""
from typing import Optional

from pydantic import BaseModel, Field

from .session import Readiness


class StatusResponse(BaseModel):
    """Response model for the browser status endpoint."""

    browser_ready: bool = Field(..., alias="browserReady")
    readiness: Readiness
    has_browser: bool = Field(..., alias="hasBrowser")
    has_page: bool = Field(..., alias="hasPage")
    timestamp: str
    page_title: Optional[str] = Field(None, alias="pageTitle")
    video_count: Optional[int] = Field(None, alias="videoCount")
    error: Optional[str] = None

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "browserReady": True,
                "readiness": "ready_confirmed",
                "hasBrowser": True,
                "hasPage": True,
                "timestamp": "2024-01-01T12:00:00+00:00",
                "pageTitle": "ツイビデオ ランキング",
                "videoCount": 30,
            }
        }
