import pytest

from keyroute.exceptions import BrokerConnectionError, TopicError
from keyroute.kafka import admin as admin_module
from keyroute.kafka.admin import KafkaAdmin
from keyroute.models.topic import TopicConfig
from tests.fakes import FakeAdminClient


@pytest.fixture
def admin(cluster):
    cluster.topics["__consumer_offsets"] = 50
    return KafkaAdmin("localhost:9092", client=FakeAdminClient(cluster))


def test_create_topic(admin, cluster):
    assert admin.create_topic(TopicConfig(name="orders", partitions=5)) is True
    assert cluster.topics["orders"] == 5


def test_create_existing_topic_is_not_an_error(admin):
    assert admin.create_topic(TopicConfig(name="test-topic")) is False


def test_delete_topic(admin, cluster):
    assert admin.delete_topic("test-topic") is True
    assert "test-topic" not in cluster.topics
    assert admin.delete_topic("test-topic") is False


def test_list_topics_hides_internal(admin):
    assert admin.list_topics() == ["test-topic"]
    assert admin.list_topics(include_internal=True) == ["__consumer_offsets", "test-topic"]


def test_describe_topic(admin):
    description = admin.describe_topic("test-topic")

    assert description.partition_count == 3
    assert description.replication_factor == 3
    assert [p.leader for p in description.partitions] == [1, 2, 3]


def test_describe_missing_topic(admin):
    with pytest.raises(TopicError):
        admin.describe_topic("nope")


def test_list_brokers(admin):
    assert [b.address for b in admin.list_brokers()] == [
        "localhost:9092",
        "localhost:9094",
        "localhost:9096",
    ]


def test_unreachable_cluster(admin, cluster):
    cluster.reachable = False

    with pytest.raises(BrokerConnectionError):
        admin.list_topics()


def test_quiet_admin_silences_client_logging(monkeypatch):
    configs = []
    monkeypatch.setattr(admin_module, "AdminClient", lambda config: configs.append(config))

    KafkaAdmin("localhost:9092")
    KafkaAdmin("localhost:9092", quiet=True)

    assert configs[0] == {"bootstrap.servers": "localhost:9092"}
    assert configs[1]["log_level"] == 0
    assert configs[1]["logger"]("ignored") is None
