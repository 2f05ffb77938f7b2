"""Topic settings and descriptions used by the admin commands."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class TopicConfig:
    """Settings for creating a topic."""

    name: str
    partitions: int = 3
    replication_factor: int = 3

    def __post_init__(self):
        if not self.name:
            raise ValueError("topic name must not be empty")
        if self.partitions < 1:
            raise ValueError("partitions must be at least 1")
        if self.replication_factor < 1:
            raise ValueError("replication_factor must be at least 1")


@dataclass
class PartitionInfo:
    id: int
    leader: int
    replicas: list[int] = field(default_factory=list)
    isrs: list[int] = field(default_factory=list)


@dataclass
class TopicDescription:
    name: str
    partitions: list[PartitionInfo] = field(default_factory=list)

    @property
    def partition_count(self) -> int:
        return len(self.partitions)

    @property
    def replication_factor(self) -> int:
        if not self.partitions:
            return 0
        return len(self.partitions[0].replicas)


@dataclass
class BrokerInfo:
    id: int
    host: str
    port: int

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"
