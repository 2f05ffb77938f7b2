"""Keyed producer that records which partition each user's events land on."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from confluent_kafka import KafkaException, Producer
from rich.console import Console

from keyroute.exceptions import BrokerConnectionError, SendError
from keyroute.kafka.client import ClientStats, RoutingClient
from keyroute.models.config import ProducerConfig
from keyroute.models.event import UserEvent
from keyroute.runtime import wait_cancelled

logger = logging.getLogger(__name__)

ProducerFactory = Callable[[dict[str, Any]], Any]


@dataclass
class ProducerStats(ClientStats):
    messages_sent: int = 0
    send_errors: int = 0


class RoutingProducer(RoutingClient[ProducerStats]):
    """Sends events keyed by user id and tracks the partitions the cluster picked."""

    def __init__(self, config: ProducerConfig, client: Any, console: Console | None = None):
        super().__init__(ProducerStats(), console)
        self.config = config
        self._producer = client

    @classmethod
    def connect(
        cls,
        config: ProducerConfig,
        client_factory: ProducerFactory | None = None,
        console: Console | None = None,
    ) -> RoutingProducer:
        """Create the client and make sure the cluster answers a metadata request."""
        factory = client_factory or Producer
        try:
            client = factory(config.to_kafka_config())
            metadata = client.list_topics(timeout=config.connect_timeout_seconds)
        except KafkaException as e:
            raise BrokerConnectionError(
                f"Failed to create producer for {config.bootstrap_servers}: {e}"
            ) from e

        if config.topic not in metadata.topics:
            logger.warning(
                f"Topic '{config.topic}' does not exist yet, relying on broker auto-creation"
            )
        logger.info(f"Producer connected to {config.bootstrap_servers}")
        return cls(config, client, console)

    def send(self, key: str, payload: bytes) -> tuple[int, int]:
        """Send one message and block until the cluster acknowledged it.

        Returns the (partition, offset) assigned by the cluster.
        """
        topic = self.config.topic
        outcome: dict[str, Any] = {}

        def on_delivery(err, msg):
            if err is not None:
                outcome["error"] = err
            else:
                outcome["partition"] = msg.partition()
                outcome["offset"] = msg.offset()

        try:
            self._producer.produce(topic, key=key.encode(), value=payload, on_delivery=on_delivery)
            remaining = self._producer.flush(self.config.send_timeout_seconds)
        except (KafkaException, BufferError) as e:
            raise SendError(topic, key, str(e)) from e

        if "error" in outcome:
            raise SendError(topic, key, str(outcome["error"]))
        if remaining or "partition" not in outcome:
            raise SendError(
                topic, key, f"delivery not confirmed within {self.config.send_timeout_seconds}s"
            )

        partition, offset = outcome["partition"], outcome["offset"]
        self.distribution.record(key, partition)
        return partition, offset

    async def produce_events(
        self, events: Sequence[UserEvent], cancel: asyncio.Event
    ) -> ProducerStats:
        """Send one event per tick until the batch is done or cancellation is requested.

        A failed send is logged and counted; the next tick carries on with the next event.
        The summary is printed in every case, partial if the run was cancelled.
        """
        interval = self.config.message_interval_seconds
        try:
            for event in events[: self.config.message_count]:
                if await wait_cancelled(cancel, interval):
                    self._stats.cancelled = True
                    logger.info("Producer stopped")
                    break

                try:
                    partition, offset = await self._worker.run(
                        self.send, event.key, event.to_payload()
                    )
                except SendError as e:
                    self._stats.send_errors += 1
                    logger.error(f"{e} (event={event.event_type.value})")
                    continue

                self._stats.messages_sent += 1
                self.console.print(
                    f"Message sent - Partition: {partition}, Offset: {offset}, "
                    f"Key: {event.key}, Event: {event.event_type.value}",
                    markup=False,
                    highlight=False,
                )
            else:
                logger.info(f"Sent {self._stats.messages_sent} messages, stopping producer")
        finally:
            self.print_summary()

        return self.get_stats()

    def _close_client(self) -> None:
        remaining = self._producer.flush(self.config.send_timeout_seconds)
        if remaining:
            logger.warning(f"{remaining} message(s) still undelivered on close")
