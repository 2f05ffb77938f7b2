"""Command line entry points."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import sys

import click
from rich.console import Console
from rich.table import Table

from keyroute.cli.logging_setup import configure_logging
from keyroute.exceptions import BrokerConnectionError, TopicError
from keyroute.executor.consumer import ConsumerExecutor
from keyroute.executor.producer import ProducerExecutor
from keyroute.infrastructure.docker_manager import DockerManager
from keyroute.kafka.admin import KafkaAdmin
from keyroute.models.config import (
    DEFAULT_BROKERS,
    ConsumerConfig,
    ProducerConfig,
    load_env_file,
    parse_list,
)
from keyroute.models.topic import TopicConfig, TopicDescription

logger = logging.getLogger(__name__)


def _setup(ctx: click.Context, log_level: str | None) -> None:
    """Load ``.env`` and configure logging once per invocation.

    Under the ``keyroute`` group this already happened in the group callback;
    a subcommand only reconfigures logging when given its own level.
    """
    if ctx.parent is not None:
        if log_level:
            configure_logging(log_level)
        return
    found = load_env_file()
    configure_logging(log_level)
    if not found:
        logger.info("No .env file found, using default values")


def _overrides(**values) -> dict:
    return {k: v for k, v in values.items() if v is not None}


def _run(executor) -> int:
    try:
        result = asyncio.run(executor.execute())
    except BrokerConnectionError as e:
        logger.error(str(e))
        return 1
    logger.info(f"{executor.name.capitalize()} stopped")
    return result.exit_code


@click.command()
@click.option("--brokers", help="Comma-separated broker list (env: KAFKA_BROKERS).")
@click.option("--topic", help="Topic to send to (env: KAFKA_TOPIC).")
@click.option("--count", "message_count", type=int, help="Messages to send (env: MESSAGE_COUNT).")
@click.option(
    "--interval-ms",
    "message_interval_ms",
    type=int,
    help="Delay between messages (env: MESSAGE_INTERVAL_MS).",
)
@click.option("--users", help="Comma-separated user ids to cycle through (env: USER_IDS).")
@click.option("--log-level", help="Logging level (env: LOG_LEVEL).")
@click.pass_context
def producer(ctx, brokers, topic, message_count, message_interval_ms, users, log_level):
    """Send user events keyed by user id and report where each key landed."""
    _setup(ctx, log_level)
    try:
        config = dataclasses.replace(
            ProducerConfig.from_env(),
            **_overrides(
                brokers=parse_list(brokers) if brokers else None,
                topic=topic,
                message_count=message_count,
                message_interval_ms=message_interval_ms,
                user_ids=parse_list(users) if users else None,
            ),
        )
    except ValueError as e:
        raise click.BadParameter(str(e)) from e
    sys.exit(_run(ProducerExecutor(config, console=Console())))


@click.command()
@click.option("--brokers", help="Comma-separated broker list (env: KAFKA_BROKERS).")
@click.option("--topic", help="Topic to consume (env: KAFKA_TOPIC).")
@click.option("--group-id", help="Consumer group (env: KAFKA_GROUP_ID).")
@click.option(
    "--max-messages",
    type=int,
    help="Stop after this many messages, 0 = unlimited (env: MAX_MESSAGES).",
)
@click.option(
    "--stop-at-end/--no-stop-at-end",
    default=None,
    help="Stop once all assigned partitions are read to the end (env: STOP_AT_END).",
)
@click.option("--log-level", help="Logging level (env: LOG_LEVEL).")
@click.pass_context
def consumer(ctx, brokers, topic, group_id, max_messages, stop_at_end, log_level):
    """Join a consumer group and report which partition each key came from."""
    _setup(ctx, log_level)
    try:
        config = dataclasses.replace(
            ConsumerConfig.from_env(),
            **_overrides(
                brokers=parse_list(brokers) if brokers else None,
                topic=topic,
                group_id=group_id,
                max_messages=max_messages,
                stop_at_end=stop_at_end,
            ),
        )
    except ValueError as e:
        raise click.BadParameter(str(e)) from e
    sys.exit(_run(ConsumerExecutor(config, console=Console())))


@click.group()
@click.option("--log-level", help="Logging level (env: LOG_LEVEL).")
@click.pass_context
def cli(ctx, log_level):
    """Partition routing demo on a three-broker Kafka cluster."""
    _setup(ctx, log_level)


cli.add_command(producer)
cli.add_command(consumer)


@cli.group()
def cluster():
    """Start, stop and inspect the local Docker cluster."""


@cluster.command("up")
@click.option("--no-wait", is_flag=True, help="Do not wait for the brokers to answer.")
def cluster_up(no_wait):
    """Start ZooKeeper, three brokers and Kafka UI."""
    try:
        DockerManager().cluster_up(wait=not no_wait)
    except (RuntimeError, TimeoutError) as e:
        raise click.ClickException(str(e)) from e


@cluster.command("down")
@click.option("--volumes", "-v", is_flag=True, help="Also remove volumes.")
def cluster_down(volumes):
    """Stop the cluster."""
    try:
        DockerManager().cluster_down(remove_volumes=volumes)
    except RuntimeError as e:
        raise click.ClickException(str(e)) from e


@cluster.command("restart")
@click.option("--no-wait", is_flag=True, help="Do not wait for the brokers to answer.")
def cluster_restart(no_wait):
    """Stop the cluster and start it again."""
    try:
        DockerManager().cluster_restart(wait=not no_wait)
    except (RuntimeError, TimeoutError) as e:
        raise click.ClickException(str(e)) from e


@cluster.command("status")
def cluster_status():
    """Show container state and published addresses."""
    console = Console()
    manager = DockerManager(console)
    status = manager.cluster_status()
    if not status:
        console.print("[yellow]No cluster containers found[/yellow]")
        return
    table = Table(title="Kafka cluster")
    table.add_column("Service", style="cyan")
    table.add_column("State")
    table.add_column("Address", style="green")
    for service, info in sorted(status.items()):
        table.add_row(service, info["state"], info["url"])
    console.print(table)
    if manager.is_cluster_running():
        console.print("[green]All services running[/green]")
    else:
        console.print("[yellow]Some services are not running[/yellow]")


@cluster.command("logs")
@click.argument("service", required=False)
def cluster_logs(service):
    """Follow container logs."""
    sys.exit(DockerManager().follow_logs(service))


@cluster.command("health")
@click.option("--brokers", default=DEFAULT_BROKERS, envvar="KAFKA_BROKERS", show_default=True)
def cluster_health(brokers):
    """List the brokers that answer a metadata request."""
    console = Console()
    try:
        found = KafkaAdmin(brokers).list_brokers()
    except BrokerConnectionError as e:
        raise click.ClickException(str(e)) from e
    for broker in found:
        console.print(f"Broker {broker.id}: {broker.address}")
    console.print(f"[green]{len(found)} broker(s) available[/green]")


@cli.group()
@click.option("--brokers", default=DEFAULT_BROKERS, envvar="KAFKA_BROKERS", show_default=True)
@click.pass_context
def topic(ctx, brokers):
    """Create, list, describe and delete topics."""
    ctx.obj = KafkaAdmin(brokers)


@topic.command("create")
@click.argument("name", default="test-topic", envvar="KAFKA_TOPIC")
@click.option("--partitions", default=3, show_default=True)
@click.option("--replication-factor", default=3, show_default=True)
@click.pass_obj
def topic_create(admin: KafkaAdmin, name, partitions, replication_factor):
    """Create a topic if it does not exist."""
    try:
        created = admin.create_topic(
            TopicConfig(name=name, partitions=partitions, replication_factor=replication_factor)
        )
    except (TopicError, ValueError) as e:
        raise click.ClickException(str(e)) from e
    if created:
        click.echo(
            f"Created topic: {name} with {partitions} partitions "
            f"and replication factor {replication_factor}"
        )
    else:
        click.echo(f"Topic {name} already exists")


@topic.command("list")
@click.pass_obj
def topic_list(admin: KafkaAdmin):
    """List topics."""
    try:
        names = admin.list_topics()
    except BrokerConnectionError as e:
        raise click.ClickException(str(e)) from e
    for name in names:
        click.echo(name)


def _partition_table(description: TopicDescription) -> Table:
    table = Table(
        title=f"{description.name} ({description.partition_count} partitions, "
        f"RF {description.replication_factor})"
    )
    table.add_column("Partition", style="cyan")
    table.add_column("Leader", style="green")
    table.add_column("Replicas")
    table.add_column("ISR")
    for p in description.partitions:
        table.add_row(
            str(p.id),
            str(p.leader),
            ",".join(str(r) for r in p.replicas),
            ",".join(str(r) for r in p.isrs),
        )
    return table


@topic.command("describe")
@click.argument("name", required=False)
@click.pass_obj
def topic_describe(admin: KafkaAdmin, name):
    """Show partition leaders, replicas and in-sync replicas.

    Without NAME every topic on the cluster is described.
    """
    try:
        names = [name] if name else admin.list_topics()
        descriptions = [admin.describe_topic(n) for n in names]
    except (TopicError, BrokerConnectionError) as e:
        raise click.ClickException(str(e)) from e

    console = Console()
    if not descriptions:
        console.print("[yellow]No topics found[/yellow]")
    for description in descriptions:
        console.print(_partition_table(description))


@topic.command("delete")
@click.argument("name")
@click.pass_obj
def topic_delete(admin: KafkaAdmin, name):
    """Delete a topic."""
    try:
        deleted = admin.delete_topic(name)
    except TopicError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Deleted topic: {name}" if deleted else f"Topic {name} does not exist")


if __name__ == "__main__":
    cli()
