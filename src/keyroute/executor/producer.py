from __future__ import annotations

from datetime import datetime, timezone

from rich.console import Console

from keyroute.executor.base import BaseExecutor
from keyroute.executor.result import ExecutionResult
from keyroute.generators.events import generate_user_events
from keyroute.kafka.producer import ProducerFactory, RoutingProducer
from keyroute.models.config import ProducerConfig


class ProducerExecutor(BaseExecutor):
    name = "producer"

    def __init__(
        self,
        config: ProducerConfig,
        console: Console | None = None,
        client_factory: ProducerFactory | None = None,
        start: datetime | None = None,
    ):
        super().__init__(console)
        self.config = config
        self._client_factory = client_factory
        self._start = start

    def banner(self) -> list[str]:
        return [
            "[bold]Starting Kafka Producer - Partition Routing Demo[/bold]",
            f"Brokers: {', '.join(self.config.brokers)}",
            f"Topic: {self.config.topic}",
            f"Message Count: {self.config.message_count}",
            f"Message Interval: {self.config.message_interval_ms}ms",
        ]

    def _connect(self) -> RoutingProducer:
        return RoutingProducer.connect(
            self.config, client_factory=self._client_factory, console=self.console
        )

    async def run(self) -> ExecutionResult:
        assert isinstance(self.client, RoutingProducer)
        events = generate_user_events(
            self.config.message_count,
            users=self.config.user_ids,
            start=self._start or datetime.now(timezone.utc),
        )
        stats = await self.client.produce_events(events, self._stop_event)
        return ExecutionResult(
            messages=stats.messages_sent,
            failed=stats.send_errors,
            cancelled=stats.cancelled,
        )
