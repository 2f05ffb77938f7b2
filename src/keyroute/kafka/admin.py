"""Topic management on the demo cluster."""

from __future__ import annotations

import logging
from typing import Any

from confluent_kafka import KafkaError, KafkaException
from confluent_kafka.admin import AdminClient, NewTopic

from keyroute.exceptions import BrokerConnectionError, TopicError
from keyroute.models.topic import BrokerInfo, PartitionInfo, TopicConfig, TopicDescription

logger = logging.getLogger(__name__)


def _error_code(exc: KafkaException) -> int | None:
    if exc.args and isinstance(exc.args[0], KafkaError):
        return exc.args[0].code()
    return None


class KafkaAdmin:
    def __init__(
        self,
        bootstrap_servers: str,
        client: Any = None,
        timeout: float = 10.0,
        quiet: bool = False,
    ):
        self.bootstrap_servers = bootstrap_servers
        self.timeout = timeout
        if client is None:
            config: dict[str, Any] = {"bootstrap.servers": bootstrap_servers}
            if quiet:
                config.update({"log_level": 0, "logger": lambda *args: None})
            client = AdminClient(config)
        self._client = client

    def _metadata(self, topic: str | None = None):
        try:
            return self._client.list_topics(topic=topic, timeout=self.timeout)
        except KafkaException as e:
            raise BrokerConnectionError(
                f"Failed to reach Kafka brokers {self.bootstrap_servers}: {e}"
            ) from e

    def create_topic(self, config: TopicConfig) -> bool:
        """Create the topic; False if it already existed."""
        new_topic = NewTopic(
            config.name,
            num_partitions=config.partitions,
            replication_factor=config.replication_factor,
        )
        futures = self._client.create_topics([new_topic], operation_timeout=self.timeout)
        for name, future in futures.items():
            try:
                future.result()
            except KafkaException as e:
                if _error_code(e) == KafkaError.TOPIC_ALREADY_EXISTS:
                    logger.info(f"Topic '{name}' already exists")
                    return False
                raise TopicError(f"Failed to create topic '{name}': {e}") from e
        logger.info(
            f"Created topic '{config.name}' with {config.partitions} partitions "
            f"(replication factor {config.replication_factor})"
        )
        return True

    def delete_topic(self, name: str) -> bool:
        """Delete the topic; False if it did not exist."""
        futures = self._client.delete_topics([name], operation_timeout=self.timeout)
        for topic, future in futures.items():
            try:
                future.result()
            except KafkaException as e:
                if _error_code(e) == KafkaError.UNKNOWN_TOPIC_OR_PART:
                    logger.info(f"Topic '{topic}' does not exist")
                    return False
                raise TopicError(f"Failed to delete topic '{topic}': {e}") from e
        logger.info(f"Deleted topic '{name}'")
        return True

    def list_topics(self, include_internal: bool = False) -> list[str]:
        names = self._metadata().topics.keys()
        if not include_internal:
            names = [n for n in names if not n.startswith("__")]
        return sorted(names)

    def describe_topic(self, name: str) -> TopicDescription:
        topic = self._metadata(name).topics.get(name)
        if topic is None or topic.error is not None:
            reason = topic.error if topic is not None else "not found"
            raise TopicError(f"Cannot describe topic '{name}': {reason}")

        partitions = [
            PartitionInfo(
                id=p.id,
                leader=p.leader,
                replicas=list(p.replicas),
                isrs=list(p.isrs),
            )
            for p in sorted(topic.partitions.values(), key=lambda p: p.id)
        ]
        return TopicDescription(name=name, partitions=partitions)

    def list_brokers(self) -> list[BrokerInfo]:
        brokers = self._metadata().brokers.values()
        return sorted(
            (BrokerInfo(id=b.id, host=b.host, port=b.port) for b in brokers),
            key=lambda b: b.id,
        )
