"""Messages as observed on the wire after the cluster assigned partition and offset."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RoutedMessage:
    """A keyed message with the partition and offset assigned by the cluster."""

    topic: str
    key: str
    payload: bytes
    partition: int
    offset: int

    @classmethod
    def from_kafka(cls, msg: Any) -> RoutedMessage:
        """Build from a confluent_kafka ``Message`` (or anything shaped like one)."""
        raw_key = msg.key()
        if isinstance(raw_key, bytes):
            key = raw_key.decode("utf-8", errors="replace")
        else:
            key = raw_key or ""
        return cls(
            topic=msg.topic(),
            key=key,
            payload=msg.value() or b"",
            partition=msg.partition(),
            offset=msg.offset(),
        )

    @property
    def text(self) -> str:
        return self.payload.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class EndOfPartition:
    """The consumer caught up with the current end of an assigned partition."""

    topic: str
    partition: int
    offset: int
