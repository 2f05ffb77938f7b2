"""Base class for the routing producer and consumer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Generic, TypeVar

from rich.console import Console

from keyroute.kafka.distribution import PartitionDistribution, SummaryPrinter
from keyroute.runtime import KafkaWorker


@dataclass
class ClientStats:
    """Base class for client statistics."""

    cancelled: bool = False


StatsT = TypeVar("StatsT", bound=ClientStats)


class RoutingClient(ABC, Generic[StatsT]):
    """Common lifecycle: distribution record, once-only summary and close()."""

    summary_verb = "went to"

    def __init__(self, stats: StatsT, console: Console | None = None) -> None:
        self.console = console or Console()
        self.distribution = PartitionDistribution()
        self._summary = SummaryPrinter(self.console, verb=self.summary_verb)
        self._stats = stats
        self._worker = KafkaWorker(thread_name_prefix=type(self).__name__.lower())
        self._closed = False

    def print_summary(self) -> bool:
        """Print the partition summary; only the first call has any effect."""
        return self._summary.print_once(self.distribution)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the client session. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._worker.shutdown()
        self._close_client()

    @abstractmethod
    def _close_client(self) -> None: ...

    def get_stats(self) -> StatsT:
        """Get a snapshot of the client statistics."""
        return replace(self._stats)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
