"""Data models for the application."""
from .listing import ListingItem, ListingRequest, SortOrder
from .responses import StatusResponse
from .session import Readiness, SessionPhase

__all__ = [
    "ListingItem",
    "ListingRequest",
    "SortOrder",
    "StatusResponse",
    "Readiness",
    "SessionPhase",
]
