from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence


class OutputMode(enum.Enum):
    """How a child process's output is handled."""

    # stdout dropped, stderr captured for diagnostics
    DISCARD = "discard"
    # stdout and stderr interleaved into one buffer
    COMBINED = "combined"
    # stdout and stderr captured separately
    CAPTURE = "capture"
    # echoed to the terminal while also captured
    STREAM = "stream"
    # terminal stdin/stdout/stderr inherited, nothing captured
    INTERACTIVE = "interactive"


@dataclass(frozen=True, slots=True)
class CommandRequest:
    command: str
    args: Sequence[str] = ()
    cwd: Optional[str] = None
    # Merged over the current process environment.
    env: Mapping[str, str] = field(default_factory=dict)
    output_mode: OutputMode = OutputMode.COMBINED
    stdin: Optional[bytes] = None

    @property
    def display(self) -> str:
        return " ".join([self.command, *self.args])


@dataclass(frozen=True, slots=True)
class CommandResult:
    exit_code: int
    stdout: bytes = b""
    stderr: bytes = b""
    combined: bytes = b""

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")

    @property
    def combined_text(self) -> str:
        return self.combined.decode("utf-8", errors="replace")

    def format_error(self, description: str = "") -> str:
        """
        Build an operator-facing message for a failed command.

        Includes the description, the exit code when known, and stderr (or the
        combined output when stderr is empty).
        """
        parts: list[str] = []
        if description:
            parts.append(f"command failed: {description}")
        if self.exit_code >= 0:
            parts.append(f"exit code: {self.exit_code}")
        if self.stderr:
            parts.append(f"stderr:\n{self.stderr_text}")
        elif self.combined:
            parts.append(f"output:\n{self.combined_text}")
        return ", ".join(parts)


class CommandExecutor:
    async def execute(self, request: CommandRequest) -> CommandResult:
        """
        Run one external process to completion.

        Raises CommandNotFoundError if the program cannot be started, CommandError on
        a non-zero exit, and CommandInterruptedError when the child is killed by
        a signal. If the calling task is cancelled the child is killed and reaped
        before CancelledError propagates.
        """
        raise NotImplementedError
