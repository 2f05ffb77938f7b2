"""Key-based partition routing demo for a multi-broker Kafka cluster."""

__version__ = "0.1.0"
