from __future__ import annotations

import json
import subprocess
import time
from pathlib import Path

from confluent_kafka import KafkaException
from rich.console import Console

from keyroute.exceptions import BrokerConnectionError
from keyroute.kafka.admin import KafkaAdmin

DOCKER_DIR = Path(__file__).parent.parent.parent.parent / "docker"
COMPOSE_FILE = DOCKER_DIR / "docker-compose.yml"
BROKER_SERVICES = ("broker-1", "broker-2", "broker-3")


class DockerManager:
    def __init__(self, console: Console | None = None, compose_file: Path = COMPOSE_FILE):
        self._console = console or Console()
        self.compose_file = compose_file

    def _compose(self, *args: str) -> list[str]:
        return ["docker", "compose", "-f", str(self.compose_file), *args]

    def cluster_up(self, wait: bool = True) -> None:
        self._console.print("[bold blue]Starting Kafka cluster (3 brokers)...[/bold blue]")

        try:
            subprocess.run(self._compose("up", "-d"), check=True, capture_output=True, text=True)
        except subprocess.CalledProcessError as e:
            stderr = e.stderr or ""
            if (
                "Cannot connect to the Docker daemon" in stderr
                or "Is the docker daemon running" in stderr
            ):
                raise RuntimeError(
                    "Docker is not running. Please start Docker and try again."
                )
            if "port is already allocated" in stderr:
                raise RuntimeError(
                    "Ports 9092-9097 already in use. Stop other Kafka instances or free the ports."
                )
            if "no such file or directory" in stderr.lower() or "not found" in stderr.lower():
                raise RuntimeError(f"Docker compose file not found: {self.compose_file}")
            raise RuntimeError(f"Failed to start Kafka cluster: {stderr or e}")

        self._console.print("[bold green]Kafka containers started![/bold green]")
        if wait:
            self.wait_for_kafka()

    def cluster_down(self, remove_volumes: bool = False) -> None:
        self._console.print("[bold blue]Stopping Kafka cluster...[/bold blue]")
        cmd = self._compose("down")
        if remove_volumes:
            cmd.append("-v")
        try:
            subprocess.run(cmd, check=True, capture_output=True, text=True)
        except subprocess.CalledProcessError as e:
            stderr = e.stderr or ""
            if "Cannot connect to the Docker daemon" in stderr:
                raise RuntimeError("Docker is not running. Please start Docker and try again.")
            raise RuntimeError(f"Failed to stop Kafka cluster: {stderr or e}")
        self._console.print("[bold green]Kafka cluster stopped![/bold green]")

    def cluster_restart(self, wait: bool = True) -> None:
        self.cluster_down()
        self.cluster_up(wait=wait)

    def cluster_status(self) -> dict[str, dict[str, str]]:
        result = subprocess.run(
            self._compose("ps", "--format", "json"),
            check=False,
            capture_output=True,
            text=True,
        )
        if not result.stdout.strip():
            return {}

        try:
            services = {}
            for line in result.stdout.strip().split("\n"):
                if not line.strip():
                    continue
                data = json.loads(line)
                service_name = data.get("Service", data.get("Name", "unknown"))
                state = data.get("State", "unknown")

                url = "-"
                ports = [
                    pub["PublishedPort"]
                    for pub in data.get("Publishers") or []
                    if pub.get("PublishedPort")
                ]
                if ports:
                    # Brokers publish external and container listeners; the lower one is external
                    port = min(ports)
                    if service_name == "kafka-ui":
                        url = f"http://localhost:{port}"
                    else:
                        url = f"localhost:{port}"

                services[service_name] = {"state": state, "url": url}
            return services
        except json.JSONDecodeError:
            return {}

    def is_cluster_running(self) -> bool:
        status = self.cluster_status()
        if not status:
            return False
        return all("running" in info["state"].lower() for info in status.values())

    def get_bootstrap_servers(self) -> str:
        status = self.cluster_status()
        brokers = []
        for service, info in sorted(status.items()):
            if service in BROKER_SERVICES:
                url = info.get("url", "")
                if url and url != "-":
                    brokers.append(url)
        return ",".join(brokers) if brokers else "localhost:9092"

    def wait_for_kafka(
        self,
        bootstrap_servers: str | None = None,
        timeout: int = 120,
    ) -> None:
        if bootstrap_servers is None:
            bootstrap_servers = self.get_bootstrap_servers()

        self._console.print("[bold yellow]Waiting for Kafka to be ready...[/bold yellow]")

        # Brokers refuse connections while starting; keep librdkafka quiet meanwhile
        admin = KafkaAdmin(bootstrap_servers, timeout=5, quiet=True)
        start = time.time()

        while time.time() - start < timeout:
            try:
                admin.list_brokers()
                self._console.print("[bold green]Kafka cluster is ready![/bold green]")
                self._console.print(f"[dim]Bootstrap servers: {bootstrap_servers}[/dim]")
                return
            except (BrokerConnectionError, KafkaException):
                elapsed = int(time.time() - start)
                self._console.print(f"[dim]Waiting for Kafka... ({elapsed}s)[/dim]")
                time.sleep(3)

        raise TimeoutError(
            f"Kafka cluster did not become ready within {timeout} seconds.\n"
            "Try: docker compose logs broker-1"
        )

    def follow_logs(self, service: str | None = None) -> int:
        cmd = self._compose("logs", "-f")
        if service:
            cmd.append(service)
        return subprocess.run(cmd, check=False).returncode
