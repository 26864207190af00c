"""Workflow runner command surface.

The runner reads annotations, log groups and mask registrations from
specially formatted stdout lines (``::command::message``) and step outputs
from the file named by ``GITHUB_OUTPUT``.

Example usage:
    >>> commands = WorkflowCommands.from_environ()
    >>> with commands.group("API Request"):
    ...     commands.warning("Client error (401) - will not retry")
    >>> commands.set_output("success", "false")
"""

from __future__ import annotations

import os
import sys
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Mapping, TextIO


def escape_data(value: str) -> str:
    """Escape a command message for the runner."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class WorkflowCommands:
    """Writes workflow commands and step outputs for the runner.

    Attributes:
        stream: Text stream the runner parses (stdout in production)
        output_path: Step output file, or None to use the legacy command
        exit_code: 1 once ``set_failed`` has been called, otherwise 0
        outputs: Every output set during this invocation
    """

    def __init__(self, stream: TextIO | None = None, output_path: Path | None = None) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.output_path = output_path
        self.exit_code = 0
        self.outputs: dict[str, str] = {}

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> WorkflowCommands:
        """Build commands bound to stdout and the ``GITHUB_OUTPUT`` file."""
        env = os.environ if environ is None else environ
        output_file = env.get("GITHUB_OUTPUT")
        return cls(output_path=Path(output_file) if output_file else None)

    def _issue(self, command: str, message: str = "") -> None:
        self.stream.write(f"::{command}::{escape_data(message)}\n")
        self.stream.flush()

    def set_output(self, name: str, value: str) -> None:
        """Record a step output.

        Values are written with the heredoc form so multi-line response
        bodies survive intact.

        Args:
            name: Output name (e.g. ``status-code``)
            value: Output value
        """
        self.outputs[name] = value
        if self.output_path is None:
            self.stream.write("\n")
            self._issue(f"set-output name={name}", value)
            return

        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        if delimiter in name or delimiter in value:
            raise ValueError(f"Unexpected input: output value contains the delimiter {delimiter}")
        with open(self.output_path, "a", encoding="utf-8") as f:
            f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")

    def add_mask(self, secret: str) -> None:
        """Ask the runner to redact ``secret`` from all later log output."""
        self._issue("add-mask", secret)

    def info(self, message: str) -> None:
        """Write a plain log line."""
        self.stream.write(f"{message}\n")
        self.stream.flush()

    def debug(self, message: str) -> None:
        """Emit a debug message (shown only with step debugging enabled)."""
        self._issue("debug", message)

    def warning(self, message: str) -> None:
        """Emit a warning annotation."""
        self._issue("warning", message)

    def error(self, message: str) -> None:
        """Emit an error annotation."""
        self._issue("error", message)

    def set_failed(self, message: str) -> None:
        """Emit an error annotation and mark the step as failed."""
        self.exit_code = 1
        self.error(message)

    @contextmanager
    def group(self, title: str) -> Iterator[None]:
        """Fold the enclosed output into a collapsible log group."""
        self._issue("group", title)
        try:
            yield
        finally:
            self._issue("endgroup")
