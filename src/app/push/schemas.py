"""Models for the push channel."""

from typing import Any, Literal

from pydantic import BaseModel


class PushEvent(BaseModel):
    """Inbound push message, e.g. ``{"event": "new_scrobble", "payload": {...}}``."""

    event: str
    payload: Any = None


class PushAccepted(BaseModel):
    status: Literal["accepted"] = "accepted"
    notified: int  # live streams that will refresh
