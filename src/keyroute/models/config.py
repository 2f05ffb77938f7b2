"""Producer and consumer configuration, read from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping

from dotenv import find_dotenv, load_dotenv

from keyroute.models.event import DEFAULT_USERS

logger = logging.getLogger(__name__)

DEFAULT_BROKERS = "localhost:9092,localhost:9094,localhost:9096"
DEFAULT_TOPIC = "test-topic"
DEFAULT_GROUP_ID = "test-consumer-group"


def load_env_file(path: str | os.PathLike | None = None) -> bool:
    """Load a ``.env`` file into the environment without overriding what is set.

    Without ``path`` the file is searched from the working directory upwards.
    Returns False when no file was found.
    """
    if path is None:
        path = find_dotenv(usecwd=True)
    if not path or not os.path.isfile(path):
        return False
    load_dotenv(path, override=False)
    return True


def parse_list(value: str) -> list[str]:
    """Split a comma-separated value, dropping blanks."""
    return [item.strip() for item in value.split(",") if item.strip()]


def _env_str(environ: Mapping[str, str], key: str, default: str) -> str:
    value = environ.get(key, "")
    return value if value else default


def _env_int(environ: Mapping[str, str], key: str, default: int) -> int:
    value = environ.get(key, "")
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer {key}={value!r}, using {default}")
        return default


def _env_bool(environ: Mapping[str, str], key: str, default: bool) -> bool:
    value = environ.get(key, "").strip().lower()
    if not value:
        return default
    return value in ("1", "true", "yes", "on")


@dataclass
class ProducerConfig:
    """Settings for the routing producer."""

    brokers: list[str] = field(default_factory=lambda: parse_list(DEFAULT_BROKERS))
    topic: str = DEFAULT_TOPIC
    message_count: int = 20
    message_interval_ms: int = 500
    user_ids: list[str] = field(default_factory=lambda: list(DEFAULT_USERS))
    acks: str = "all"
    retries: int = 5
    compression_type: str = "snappy"
    connect_timeout_seconds: float = 10.0
    send_timeout_seconds: float = 30.0

    def __post_init__(self):
        if not self.brokers:
            raise ValueError("at least one broker address is required")
        if not self.topic:
            raise ValueError("topic must not be empty")
        if self.message_count < 0:
            raise ValueError("message_count must be >= 0")
        if self.message_interval_ms < 0:
            raise ValueError("message_interval_ms must be >= 0")
        if not self.user_ids:
            raise ValueError("user_ids must not be empty")
        if self.retries < 0:
            raise ValueError("retries must be >= 0")

    @property
    def bootstrap_servers(self) -> str:
        return ",".join(self.brokers)

    @property
    def message_interval_seconds(self) -> float:
        return self.message_interval_ms / 1000

    def to_kafka_config(self) -> dict[str, Any]:
        # Idempotence would override acks/retries, keep it explicit
        return {
            "bootstrap.servers": self.bootstrap_servers,
            "acks": self.acks,
            "retries": self.retries,
            "compression.type": self.compression_type,
            "enable.idempotence": False,
        }

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ProducerConfig:
        env = os.environ if environ is None else environ
        return cls(
            brokers=parse_list(_env_str(env, "KAFKA_BROKERS", DEFAULT_BROKERS)),
            topic=_env_str(env, "KAFKA_TOPIC", DEFAULT_TOPIC),
            message_count=_env_int(env, "MESSAGE_COUNT", 20),
            message_interval_ms=_env_int(env, "MESSAGE_INTERVAL_MS", 500),
            user_ids=parse_list(_env_str(env, "USER_IDS", ",".join(DEFAULT_USERS))),
        )


@dataclass
class ConsumerConfig:
    """Settings for the routing consumer."""

    brokers: list[str] = field(default_factory=lambda: parse_list(DEFAULT_BROKERS))
    topic: str = DEFAULT_TOPIC
    group_id: str = DEFAULT_GROUP_ID
    max_messages: int = 0  # 0 = unlimited
    stop_at_end: bool = False
    auto_offset_reset: str = "earliest"
    auto_commit_interval_ms: int = 1000
    poll_timeout_seconds: float = 1.0
    connect_timeout_seconds: float = 10.0

    def __post_init__(self):
        if not self.brokers:
            raise ValueError("at least one broker address is required")
        if not self.topic:
            raise ValueError("topic must not be empty")
        if not self.group_id:
            raise ValueError("group_id must not be empty")
        if self.max_messages < 0:
            raise ValueError("max_messages must be >= 0")
        if self.poll_timeout_seconds <= 0:
            raise ValueError("poll_timeout_seconds must be > 0")

    @property
    def bootstrap_servers(self) -> str:
        return ",".join(self.brokers)

    def to_kafka_config(self) -> dict[str, Any]:
        # Offsets are stored explicitly on acknowledge and committed on the interval
        return {
            "bootstrap.servers": self.bootstrap_servers,
            "group.id": self.group_id,
            "auto.offset.reset": self.auto_offset_reset,
            "partition.assignment.strategy": "roundrobin",
            "enable.auto.commit": True,
            "auto.commit.interval.ms": self.auto_commit_interval_ms,
            "enable.auto.offset.store": False,
            "enable.partition.eof": True,
        }

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ConsumerConfig:
        env = os.environ if environ is None else environ
        return cls(
            brokers=parse_list(_env_str(env, "KAFKA_BROKERS", DEFAULT_BROKERS)),
            topic=_env_str(env, "KAFKA_TOPIC", DEFAULT_TOPIC),
            group_id=_env_str(env, "KAFKA_GROUP_ID", DEFAULT_GROUP_ID),
            max_messages=_env_int(env, "MAX_MESSAGES", 0),
            stop_at_end=_env_bool(env, "STOP_AT_END", False),
        )
