"""Execution result dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ExecutionResult:
    """Result of a producer or consumer run."""

    messages: int = 0
    failed: int = 0
    cancelled: bool = False
    duration_seconds: float = 0.0
    errors: list[str] = field(default_factory=list)

    def add_error(self, error: str) -> None:
        """Add a fatal error message to the result."""
        self.errors.append(error)

    @property
    def exit_code(self) -> int:
        return 1 if self.errors else 0
