"""Consumer-group member that records which partition each key arrives from."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

from confluent_kafka import Consumer, KafkaError, KafkaException, TopicPartition
from rich.console import Console

from keyroute.exceptions import BrokerConnectionError, ConsumeError
from keyroute.kafka.client import ClientStats, RoutingClient
from keyroute.kafka.distribution import PartitionDistribution
from keyroute.models.config import ConsumerConfig
from keyroute.models.message import EndOfPartition, RoutedMessage

logger = logging.getLogger(__name__)

ConsumerFactory = Callable[[dict[str, Any]], Any]


@dataclass
class ConsumerStats(ClientStats):
    messages_consumed: int = 0
    reached_end: bool = False
    reached_max: bool = False


class ConsumerHandler(ABC):
    """Callbacks the consumer drives as partitions are assigned, read and revoked."""

    def setup(self, partitions: list[int]) -> None:  # noqa: B027
        pass

    @abstractmethod
    def handle(self, message: RoutedMessage) -> None: ...

    def cleanup(self, partitions: list[int]) -> None:  # noqa: B027
        pass


class PartitionTrackingHandler(ConsumerHandler):
    """Records each message's partition under its key and prints a line for it."""

    def __init__(
        self,
        distribution: PartitionDistribution,
        console: Console,
        topic: str,
        group_id: str,
    ):
        self.distribution = distribution
        self.console = console
        self.topic = topic
        self.group_id = group_id
        self.message_count = 0

    def setup(self, partitions: list[int]) -> None:
        logger.info(
            f"Consumer setup completed for topic: {self.topic}, group: {self.group_id}, "
            f"partitions: {partitions}"
        )

    def handle(self, message: RoutedMessage) -> None:
        self.message_count += 1
        self.distribution.record(message.key, message.partition)
        self.console.print(
            f"Message #{self.message_count} received - Partition: {message.partition}, "
            f"Offset: {message.offset}, Key: {message.key}, Value: {message.text}",
            markup=False,
            highlight=False,
        )

    def cleanup(self, partitions: list[int]) -> None:
        logger.info(
            f"Consumer cleanup completed for topic: {self.topic}, group: {self.group_id}, "
            f"partitions: {partitions}"
        )


class RoutingConsumer(RoutingClient[ConsumerStats]):
    """Joins a consumer group; the group coordinator decides which partitions it reads."""

    summary_verb = "came from"

    def __init__(
        self,
        config: ConsumerConfig,
        client: Any,
        handler: ConsumerHandler | None = None,
        console: Console | None = None,
    ):
        super().__init__(ConsumerStats(), console)
        self.config = config
        self._consumer = client
        self.handler = handler or PartitionTrackingHandler(
            self.distribution, self.console, config.topic, config.group_id
        )
        self._assigned: set[int] = set()
        # Partitions that reported end-of-partition with nothing read since
        self._at_end: set[int] = set()

    @classmethod
    def join(
        cls,
        config: ConsumerConfig,
        handler: ConsumerHandler | None = None,
        client_factory: ConsumerFactory | None = None,
        console: Console | None = None,
    ) -> RoutingConsumer:
        """Create the client, check the cluster is reachable and subscribe."""
        factory = client_factory or Consumer
        try:
            client = factory(config.to_kafka_config())
        except KafkaException as e:
            raise BrokerConnectionError(f"Failed to create consumer: {e}") from e

        try:
            metadata = client.list_topics(timeout=config.connect_timeout_seconds)
        except KafkaException as e:
            client.close()
            raise BrokerConnectionError(
                f"Failed to reach Kafka brokers {config.bootstrap_servers}: {e}"
            ) from e

        if config.topic not in metadata.topics:
            logger.warning(f"Topic '{config.topic}' does not exist yet, waiting for it")

        consumer = cls(config, client, handler, console)
        client.subscribe(
            [config.topic], on_assign=consumer._on_assign, on_revoke=consumer._on_revoke
        )
        logger.info(f"Joined group '{config.group_id}' on {config.bootstrap_servers}")
        return consumer

    @property
    def assigned_partitions(self) -> list[int]:
        return sorted(self._assigned)

    def _on_assign(self, client: Any, partitions: list[TopicPartition]) -> None:
        ids = [tp.partition for tp in partitions]
        self._assigned.update(ids)
        self._at_end.difference_update(ids)
        self.handler.setup(ids)

    def _on_revoke(self, client: Any, partitions: list[TopicPartition]) -> None:
        ids = [tp.partition for tp in partitions]
        self._assigned.difference_update(ids)
        self._at_end.difference_update(ids)
        self.handler.cleanup(ids)

    def receive(self, timeout: float | None = None) -> RoutedMessage | EndOfPartition | None:
        """Poll for the next message; None if nothing arrived within ``timeout``."""
        if timeout is None:
            timeout = self.config.poll_timeout_seconds
        msg = self._consumer.poll(timeout)
        if msg is None:
            return None

        err = msg.error()
        if err is None:
            return RoutedMessage.from_kafka(msg)
        if err.code() == KafkaError._PARTITION_EOF:
            return EndOfPartition(topic=msg.topic(), partition=msg.partition(), offset=msg.offset())
        if err.code() == KafkaError.UNKNOWN_TOPIC_OR_PART:
            logger.warning(f"Topic '{self.config.topic}' not available yet: {err.str()}")
            return None
        raise ConsumeError(self.config.topic, err.str(), partition=msg.partition())

    def acknowledge(self, message: RoutedMessage) -> None:
        """Mark the message processed; the client commits stored offsets on its interval."""
        self._consumer.store_offsets(
            offsets=[TopicPartition(message.topic, message.partition, message.offset + 1)]
        )

    def _reached_end(self) -> bool:
        return bool(self._assigned) and self._assigned <= self._at_end

    async def consume(self, cancel: asyncio.Event) -> ConsumerStats:
        """Receive until cancelled, the message limit is hit, or (optionally) the stream ends.

        The summary is printed exactly once, whichever way the loop ended. A
        ConsumeError still propagates after the summary.
        """
        max_messages = self.config.max_messages
        try:
            while not cancel.is_set():
                received = await self._worker.run(self.receive, self.config.poll_timeout_seconds)
                if received is None:
                    continue

                if isinstance(received, EndOfPartition):
                    logger.debug(
                        f"Reached end of {received.topic}[{received.partition}] "
                        f"at offset {received.offset}"
                    )
                    self._at_end.add(received.partition)
                    if self.config.stop_at_end and self._reached_end():
                        logger.info("Reached end of all assigned partitions, stopping consumer")
                        self._stats.reached_end = True
                        break
                    continue

                self._at_end.discard(received.partition)
                self._stats.messages_consumed += 1
                self.handler.handle(received)
                await self._worker.run(self.acknowledge, received)

                if max_messages and self._stats.messages_consumed >= max_messages:
                    logger.info(f"Received {max_messages} messages, stopping consumer")
                    self._stats.reached_max = True
                    break

            self._stats.cancelled = cancel.is_set()
        finally:
            self.print_summary()

        return self.get_stats()

    def _close_client(self) -> None:
        # Leaves the group and commits the stored offsets
        self._consumer.close()
