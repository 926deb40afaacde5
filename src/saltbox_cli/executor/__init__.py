"""External process execution with uniform output capture and cancellation."""

from saltbox_cli.executor.impl import SubprocessExecutor, run
from saltbox_cli.executor.interfaces import CommandExecutor, CommandRequest, CommandResult, OutputMode
from saltbox_cli.executor.mock import MockExecutor

__all__ = [
    "CommandExecutor",
    "CommandRequest",
    "CommandResult",
    "MockExecutor",
    "OutputMode",
    "SubprocessExecutor",
    "run",
]
