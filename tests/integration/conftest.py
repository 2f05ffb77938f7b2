"""Fixtures for integration tests using testcontainers."""

import pytest
from testcontainers.kafka import KafkaContainer

from keyroute.kafka.admin import KafkaAdmin
from keyroute.models.topic import TopicConfig

TOPIC = "routing-demo"


@pytest.fixture(scope="module")
def kafka_container():
    """Start a single-broker Kafka for the module."""
    with KafkaContainer("confluentinc/cp-kafka:7.5.0") as kafka:
        yield kafka


@pytest.fixture(scope="module")
def bootstrap_servers(kafka_container):
    return kafka_container.get_bootstrap_server()


@pytest.fixture(scope="module")
def routing_topic(bootstrap_servers):
    """Three partitions; one replica since the container runs a single broker."""
    admin = KafkaAdmin(bootstrap_servers, timeout=30)
    admin.create_topic(TopicConfig(name=TOPIC, partitions=3, replication_factor=1))
    return TOPIC
