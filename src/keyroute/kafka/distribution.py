"""Per-process record of which partitions each key was routed to."""

from __future__ import annotations

from rich.console import Console

SUMMARY_HEADER = "=== Partition Distribution Summary ==="


class PartitionDistribution:
    """Key -> partitions observed for that key, in arrival order.

    Only ever touched by the main loop of one process.
    """

    def __init__(self) -> None:
        self._partitions: dict[str, list[int]] = {}

    def record(self, key: str, partition: int) -> None:
        self._partitions.setdefault(key, []).append(partition)

    @property
    def keys(self) -> list[str]:
        return list(self._partitions)

    @property
    def total_messages(self) -> int:
        return sum(len(p) for p in self._partitions.values())

    def partitions_for(self, key: str) -> list[int]:
        return list(self._partitions.get(key, []))

    def unique_partitions(self, key: str) -> list[int]:
        return sorted(set(self._partitions.get(key, [])))

    def is_stable(self, key: str) -> bool:
        """True when every message for ``key`` landed on a single partition."""
        return len(self.unique_partitions(key)) == 1

    def __len__(self) -> int:
        return len(self._partitions)

    def __bool__(self) -> bool:
        return bool(self._partitions)


def _format_partitions(partitions: list[int]) -> str:
    return "[" + " ".join(str(p) for p in partitions) + "]"


def render_summary(distribution: PartitionDistribution, verb: str = "went to") -> list[str]:
    """Render the summary lines; empty when nothing was recorded."""
    if not distribution:
        return []

    lines = ["", SUMMARY_HEADER]
    for key in distribution.keys:
        count = len(distribution.partitions_for(key))
        partitions = _format_partitions(distribution.unique_partitions(key))
        lines.append(f"User {key}: {count} messages all {verb} partition(s) {partitions}")
    lines.append("=" * len(SUMMARY_HEADER))
    return lines


class SummaryPrinter:
    """Prints the distribution summary at most once."""

    def __init__(self, console: Console, verb: str = "went to"):
        self._console = console
        self._verb = verb
        self._printed = False

    @property
    def printed(self) -> bool:
        return self._printed

    def print_once(self, distribution: PartitionDistribution) -> bool:
        if self._printed:
            return False
        self._printed = True
        for line in render_summary(distribution, self._verb):
            self._console.print(line, markup=False, highlight=False)
        return True
