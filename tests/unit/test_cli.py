import json
import logging
import os
import subprocess
from unittest.mock import patch

import click
import pytest
from click.testing import CliRunner

from keyroute.cli import main
from keyroute.infrastructure import docker_manager
from keyroute.kafka import consumer as consumer_module
from keyroute.kafka import producer as producer_module
from keyroute.kafka.admin import KafkaAdmin
from tests.fakes import FakeAdminClient, FakeConsumer, FakeProducer, messages_for, partition_for


@pytest.fixture
def runner(monkeypatch, tmp_path):
    for key in (
        "KAFKA_BROKERS",
        "KAFKA_TOPIC",
        "KAFKA_GROUP_ID",
        "MESSAGE_COUNT",
        "MESSAGE_INTERVAL_MS",
        "MAX_MESSAGES",
        "USER_IDS",
        "STOP_AT_END",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return CliRunner()


@pytest.fixture
def fake_producers(monkeypatch, cluster):
    created = []

    def factory(config):
        fake = FakeProducer(config, cluster)
        created.append(fake)
        return fake

    monkeypatch.setattr(producer_module, "Producer", factory)
    return created


def test_producer_command_sends_and_summarizes(runner, fake_producers):
    result = runner.invoke(
        main.producer,
        ["--count", "5", "--interval-ms", "0", "--users", "user-123"],
    )

    partition = partition_for(b"user-123", 3)
    assert result.exit_code == 0, result.output
    assert len(fake_producers[0].produced) == 5
    assert f"User user-123: 5 messages all went to partition(s) [{partition}]" in result.output


def test_producer_command_reads_env(runner, fake_producers):
    result = runner.invoke(
        main.producer, env={"MESSAGE_COUNT": "2", "MESSAGE_INTERVAL_MS": "0"}
    )

    assert result.exit_code == 0, result.output
    assert len(fake_producers[0].produced) == 2


def test_producer_command_zero_messages(runner, fake_producers):
    result = runner.invoke(main.producer, ["--count", "0"])

    assert result.exit_code == 0, result.output
    assert fake_producers[0].produced == []
    assert "Partition Distribution Summary" not in result.output


def test_producer_command_exits_non_zero_when_unreachable(runner, fake_producers, cluster):
    cluster.reachable = False

    result = runner.invoke(main.producer, ["--count", "1"])

    assert result.exit_code == 1


def test_producer_command_rejects_negative_count(runner, fake_producers):
    result = runner.invoke(main.producer, ["--count", "-1"])

    assert result.exit_code == 2


def test_consumer_command_max_messages(runner, monkeypatch, cluster):
    script = messages_for(cluster, "test-topic", ["user-1", "user-2", "user-3", "user-1"])
    monkeypatch.setattr(
        consumer_module, "Consumer", lambda config: FakeConsumer(config, cluster, script)
    )

    result = runner.invoke(main.consumer, ["--max-messages", "3", "--group-id", "demo"])

    assert result.exit_code == 0, result.output
    assert "Message #3 received" in result.output
    assert "Message #4 received" not in result.output
    assert result.output.count("Partition Distribution Summary") == 1


def test_topic_commands(runner, monkeypatch, cluster):
    monkeypatch.setattr(
        main, "KafkaAdmin", lambda brokers: KafkaAdmin(brokers, client=FakeAdminClient(cluster))
    )

    created = runner.invoke(main.cli, ["topic", "create", "orders", "--partitions", "5"])
    again = runner.invoke(main.cli, ["topic", "create", "orders"])
    listed = runner.invoke(main.cli, ["topic", "list"])
    deleted = runner.invoke(main.cli, ["topic", "delete", "orders"])

    assert created.exit_code == 0, created.output
    assert "Created topic: orders with 5 partitions" in created.output
    assert "already exists" in again.output
    assert listed.output.split() == ["orders", "test-topic"]
    assert "Deleted topic: orders" in deleted.output
    assert "orders" not in cluster.topics


def test_cluster_health(runner, monkeypatch, cluster):
    monkeypatch.setattr(
        main, "KafkaAdmin", lambda brokers: KafkaAdmin(brokers, client=FakeAdminClient(cluster))
    )

    result = runner.invoke(main.cli, ["cluster", "health"])

    assert result.exit_code == 0, result.output
    assert "3 broker(s) available" in result.output


def test_producer_command_reads_dotenv(runner, fake_producers, tmp_path):
    (tmp_path / ".env").write_text("MESSAGE_COUNT=3\nMESSAGE_INTERVAL_MS=0\n")

    with patch.dict(os.environ):
        result = runner.invoke(main.producer, [])

    assert result.exit_code == 0, result.output
    assert len(fake_producers[0].produced) == 3


def test_environment_wins_over_dotenv(runner, fake_producers, tmp_path):
    (tmp_path / ".env").write_text("MESSAGE_COUNT=3\nMESSAGE_INTERVAL_MS=0\n")

    with patch.dict(os.environ, {"MESSAGE_COUNT": "1"}):
        result = runner.invoke(main.producer, [])

    assert result.exit_code == 0, result.output
    assert len(fake_producers[0].produced) == 1


def test_group_log_level_applies_to_subcommands(runner, monkeypatch):
    levels = []

    def fake_run(executor):
        levels.append(logging.getLogger().level)
        return 0

    monkeypatch.setattr(main, "_run", fake_run)

    result = runner.invoke(main.cli, ["--log-level", "DEBUG", "producer", "--count", "0"])
    assert result.exit_code == 0, result.output
    result = runner.invoke(
        main.cli, ["--log-level", "DEBUG", "consumer", "--log-level", "WARNING"]
    )
    assert result.exit_code == 0, result.output

    assert levels == [logging.DEBUG, logging.WARNING]


def test_topic_describe_without_name_covers_every_topic(runner, monkeypatch, cluster):
    cluster.topics["orders"] = 2
    monkeypatch.setattr(
        main, "KafkaAdmin", lambda brokers: KafkaAdmin(brokers, client=FakeAdminClient(cluster))
    )

    result = runner.invoke(main.cli, ["topic", "describe"])

    assert result.exit_code == 0, result.output
    assert "orders (2 partitions" in result.output
    assert "test-topic (3 partitions" in result.output


def test_cluster_restart_stops_then_starts(runner, monkeypatch):
    commands = []

    def fake_run(cmd, **kwargs):
        commands.append(cmd[4:])
        return subprocess.CompletedProcess(cmd, 0, stdout="")

    monkeypatch.setattr(docker_manager.subprocess, "run", fake_run)

    result = runner.invoke(main.cli, ["cluster", "restart", "--no-wait"])

    assert result.exit_code == 0, result.output
    assert commands == [["down"], ["up", "-d"]]


def test_cluster_status_reports_stopped_services(runner, monkeypatch):
    ps_output = "\n".join(
        json.dumps(entry)
        for entry in [
            {"Service": "broker-1", "State": "running", "Publishers": [{"PublishedPort": 9092}]},
            {"Service": "broker-2", "State": "exited", "Publishers": []},
        ]
    )
    monkeypatch.setattr(
        docker_manager.subprocess,
        "run",
        lambda cmd, **kwargs: subprocess.CompletedProcess(cmd, 0, stdout=ps_output),
    )

    result = runner.invoke(main.cli, ["cluster", "status"])

    assert result.exit_code == 0, result.output
    assert "localhost:9092" in result.output
    assert "Some services are not running" in result.output


def test_invalid_option_keeps_original_error(runner, fake_producers):
    result = runner.invoke(main.producer, ["--count", "-1"], standalone_mode=False)

    assert isinstance(result.exception, click.BadParameter)
    assert isinstance(result.exception.__cause__, ValueError)
