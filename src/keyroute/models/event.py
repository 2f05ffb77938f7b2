"""User activity event model."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

DEFAULT_USERS: tuple[str, ...] = ("user-123", "user-456", "user-789")


class EventType(str, Enum):
    """Kinds of user activity the generator cycles through."""

    PAGE_VIEW = "page_view"
    PURCHASE = "purchase"
    LOGIN = "login"
    LOGOUT = "logout"
    SEARCH = "search"
    ADD_TO_CART = "add_to_cart"


# Order matters: the generator picks event_types[i % len(event_types)]
EVENT_TYPES: tuple[EventType, ...] = tuple(EventType)


@dataclass(frozen=True)
class UserEvent:
    """A single synthetic user activity record.

    The routing key is always ``user_id``; everything else is payload.
    """

    user_id: str
    event_type: EventType
    timestamp: datetime
    # Read-only view; left out of the hash since mapping proxies are unhashable
    data: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        if not self.user_id:
            raise ValueError("user_id must not be empty")
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))

    @property
    def key(self) -> str:
        return self.user_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "data": dict(self.data),
        }

    def to_payload(self) -> bytes:
        """Encode the event as JSON text for the message value."""
        return json.dumps(self.to_dict()).encode()
