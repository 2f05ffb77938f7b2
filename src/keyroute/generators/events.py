from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Sequence

from keyroute.models.event import DEFAULT_USERS, EVENT_TYPES, EventType, UserEvent

DEFAULT_START = datetime(2024, 1, 1, tzinfo=timezone.utc)
DEFAULT_STEP = timedelta(seconds=1)
USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7)"


def _event_data(index: int, event_type: EventType) -> dict[str, str]:
    data = {
        "session_id": f"session-{index}",
        "ip_address": f"192.168.1.{(index % 254) + 1}",
        "user_agent": USER_AGENT,
    }
    if event_type == EventType.PURCHASE:
        data["amount"] = f"{((index % 1000) + 1) / 100:.2f}"
        data["product_id"] = f"prod-{(index % 100) + 1}"
    elif event_type == EventType.SEARCH:
        data["query"] = f"search term {index + 1}"
    return data


def generate_user_events(
    count: int,
    users: Sequence[str] = DEFAULT_USERS,
    start: datetime | None = None,
    step: timedelta = DEFAULT_STEP,
) -> list[UserEvent]:
    """Generate ``count`` events, cycling users and event types by position.

    No randomness: the same arguments always give the same events.
    """
    if count < 0:
        raise ValueError("count must be >= 0")
    if not users:
        raise ValueError("users must not be empty")
    if start is None:
        start = DEFAULT_START

    events = []
    for i in range(count):
        event_type = EVENT_TYPES[i % len(EVENT_TYPES)]
        events.append(
            UserEvent(
                user_id=users[i % len(users)],
                event_type=event_type,
                timestamp=start + i * step,
                data=_event_data(i, event_type),
            )
        )
    return events
