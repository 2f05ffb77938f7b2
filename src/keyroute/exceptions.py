"""Errors raised by the routing producer, consumer and topic admin."""

from __future__ import annotations


class KeyrouteError(Exception):
    """Base class for all keyroute errors."""


class BrokerConnectionError(KeyrouteError, ConnectionError):
    """The Kafka cluster could not be reached at startup."""


class SendError(KeyrouteError):
    """A single message could not be delivered after the client's retries."""

    def __init__(self, topic: str, key: str, reason: str):
        self.topic = topic
        self.key = key
        self.reason = reason
        super().__init__(f"Failed to send message to '{topic}' (key={key}): {reason}")


class ConsumeError(KeyrouteError):
    """The subscription reported an error the consumer cannot recover from."""

    def __init__(self, topic: str, reason: str, partition: int | None = None):
        self.topic = topic
        self.partition = partition
        self.reason = reason
        where = topic if partition is None else f"{topic}[{partition}]"
        super().__init__(f"Error from consumer on {where}: {reason}")


class TopicError(KeyrouteError):
    """A topic admin operation failed."""
