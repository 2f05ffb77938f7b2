"""Base executor: signal handling and the connect/run/teardown lifecycle."""

from __future__ import annotations

import asyncio
import signal
import time
from abc import ABC, abstractmethod

from rich.console import Console

from keyroute.executor.result import ExecutionResult
from keyroute.kafka.client import RoutingClient


class BaseExecutor(ABC):
    """Runs one routing client until its loop ends or a shutdown signal arrives."""

    name = "client"

    def __init__(self, console: Console | None = None):
        self.console = console or Console()
        self._stop_event = asyncio.Event()
        self.client: RoutingClient | None = None

    @abstractmethod
    def _connect(self) -> RoutingClient:
        """Create the client; raises BrokerConnectionError if the cluster is unreachable."""

    @abstractmethod
    async def run(self) -> ExecutionResult:
        pass

    def banner(self) -> list[str]:
        return []

    async def setup(self) -> None:
        """Print the banner and connect."""
        for line in self.banner():
            self.console.print(line)
        self.console.print()
        loop = asyncio.get_running_loop()
        self.client = await loop.run_in_executor(None, self._connect)

    async def teardown(self) -> None:
        """Close the client; reached on every exit path."""
        if self.client is not None:
            self.client.close()

    def request_stop(self) -> None:
        """Request the running loop to stop."""
        self._stop_event.set()

    @property
    def should_stop(self) -> bool:
        return self._stop_event.is_set()

    async def execute(self) -> ExecutionResult:
        """Run the full lifecycle with signal handling."""
        loop = asyncio.get_running_loop()

        def signal_handler():
            self.console.print(
                f"\n[yellow]Received shutdown signal, stopping {self.name}...[/yellow]"
            )
            self.request_stop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, signal_handler)

        start_time = time.time()
        try:
            await self.setup()
            result = await self.run()
            result.duration_seconds = time.time() - start_time
            return result
        finally:
            await self.teardown()
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)
