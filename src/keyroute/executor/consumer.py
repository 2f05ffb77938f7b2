from __future__ import annotations

import logging

from rich.console import Console

from keyroute.exceptions import ConsumeError
from keyroute.executor.base import BaseExecutor
from keyroute.executor.result import ExecutionResult
from keyroute.kafka.consumer import ConsumerFactory, ConsumerHandler, RoutingConsumer
from keyroute.models.config import ConsumerConfig

logger = logging.getLogger(__name__)


class ConsumerExecutor(BaseExecutor):
    name = "consumer"

    def __init__(
        self,
        config: ConsumerConfig,
        console: Console | None = None,
        client_factory: ConsumerFactory | None = None,
        handler: ConsumerHandler | None = None,
    ):
        super().__init__(console)
        self.config = config
        self._client_factory = client_factory
        self._handler = handler

    def banner(self) -> list[str]:
        max_messages = self.config.max_messages or "Unlimited"
        return [
            "[bold]Starting Kafka Consumer - Partition Routing Demo[/bold]",
            f"Brokers: {', '.join(self.config.brokers)}",
            f"Topic: {self.config.topic}",
            f"Group ID: {self.config.group_id}",
            f"Max Messages: {max_messages}",
            "",
            "[dim]Messages with the same key (user ID) always come from the same partition.[/dim]",
        ]

    def _connect(self) -> RoutingConsumer:
        return RoutingConsumer.join(
            self.config,
            handler=self._handler,
            client_factory=self._client_factory,
            console=self.console,
        )

    async def run(self) -> ExecutionResult:
        assert isinstance(self.client, RoutingConsumer)
        result = ExecutionResult()
        try:
            stats = await self.client.consume(self._stop_event)
        except ConsumeError as e:
            logger.error(str(e))
            result.add_error(str(e))
            stats = self.client.get_stats()

        result.messages = stats.messages_consumed
        result.cancelled = stats.cancelled
        return result
