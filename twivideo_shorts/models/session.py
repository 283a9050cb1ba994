"""Browser session state models."""
from enum import Enum


class SessionPhase(str, Enum):
    """Lifecycle phase of the browser session."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


class Readiness(str, Enum):
    """How confident we are that the session passed the bot challenge.

    READY_UNCONFIRMED means the session finished initializing but no listing
    elements were found on the ranking page, so the challenge may still be
    pending. Listing requests are served anyway.
    """

    NOT_READY = "not_ready"
    READY_UNCONFIRMED = "ready_unconfirmed"
    READY_CONFIRMED = "ready_confirmed"

    @property
    def is_ready(self) -> bool:
        return self is not Readiness.NOT_READY
