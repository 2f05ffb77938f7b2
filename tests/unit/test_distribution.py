from keyroute.kafka.distribution import (
    SUMMARY_HEADER,
    PartitionDistribution,
    SummaryPrinter,
    render_summary,
)
from tests.fakes import output


def _distribution(*pairs):
    distribution = PartitionDistribution()
    for key, partition in pairs:
        distribution.record(key, partition)
    return distribution


def test_records_partitions_in_arrival_order():
    distribution = _distribution(("user-1", 2), ("user-2", 0), ("user-1", 2))

    assert distribution.keys == ["user-1", "user-2"]
    assert distribution.partitions_for("user-1") == [2, 2]
    assert distribution.total_messages == 3
    assert len(distribution) == 2
    assert distribution.is_stable("user-1")


def test_unstable_key_reports_every_partition():
    distribution = _distribution(("user-1", 2), ("user-1", 0), ("user-1", 2))

    assert distribution.unique_partitions("user-1") == [0, 2]
    assert not distribution.is_stable("user-1")


def test_unknown_key():
    distribution = PartitionDistribution()

    assert distribution.partitions_for("nobody") == []
    assert not distribution.is_stable("nobody")
    assert not distribution


def test_render_summary_lines():
    distribution = _distribution(("user-123", 1), ("user-123", 1), ("user-456", 0))

    assert render_summary(distribution) == [
        "",
        SUMMARY_HEADER,
        "User user-123: 2 messages all went to partition(s) [1]",
        "User user-456: 1 messages all went to partition(s) [0]",
        "=" * len(SUMMARY_HEADER),
    ]


def test_render_summary_verb_and_multiple_partitions():
    distribution = _distribution(("user-1", 2), ("user-1", 0))

    assert "User user-1: 2 messages all came from partition(s) [0 2]" in render_summary(
        distribution, verb="came from"
    )


def test_render_summary_empty():
    assert render_summary(PartitionDistribution()) == []


def test_render_summary_is_repeatable():
    distribution = _distribution(("user-1", 2), ("user-2", 1))

    assert render_summary(distribution) == render_summary(distribution)


def test_summary_printer_prints_once(console):
    distribution = _distribution(("user-1", 2))
    printer = SummaryPrinter(console)

    assert printer.print_once(distribution) is True
    assert printer.print_once(distribution) is False
    assert printer.printed
    assert output(console).count(SUMMARY_HEADER) == 1
    assert "User user-1: 1 messages all went to partition(s) [2]" in output(console)


def test_summary_printer_keeps_brackets_literal(console):
    SummaryPrinter(console).print_once(_distribution(("[bold]user[/bold]", 1)))

    assert "User [bold]user[/bold]: 1 messages" in output(console)
