from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from saltbox_cli.executor.interfaces import CommandResult


class SaltboxError(Exception):
    """Base class for all errors raised by saltbox_cli."""


class ConfigError(SaltboxError):
    pass


class CommandError(SaltboxError):
    """
    An external process exited non-zero or could not be started.

    exit_code is -1 when the process never started.
    """

    def __init__(
        self,
        message: str,
        *,
        command: str,
        exit_code: int,
        stderr: str = "",
        result: Optional["CommandResult"] = None,
    ) -> None:
        super().__init__(message)
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        self.result = result


class CommandNotFoundError(CommandError):
    pass


class CommandInterruptedError(SaltboxError):
    """The process was killed by a signal or the awaiting task was cancelled."""

    def __init__(self, message: str, *, command: str, exit_code: int) -> None:
        super().__init__(message)
        self.command = command
        self.exit_code = exit_code


class GitError(SaltboxError):
    pass


class RepositoryMissingError(GitError):
    pass


class CacheLoadError(SaltboxError):
    pass


class TagParseError(SaltboxError):
    """ansible-playbook ran but its output did not contain the TASK TAGS marker."""


class TagListingError(SaltboxError):
    """ansible-playbook --list-tags could not be run to completion."""


class TagValidationError(SaltboxError):
    """Requested install tags are not known to the target playbooks."""


class PlaybookError(SaltboxError):
    def __init__(self, message: str, *, playbook_path: str, exit_code: int, stderr: str = "") -> None:
        super().__init__(message)
        self.playbook_path = playbook_path
        self.exit_code = exit_code
        self.stderr = stderr


class PlaybookInterruptedError(PlaybookError):
    pass


def is_interrupt_error(exc: BaseException | None) -> bool:
    if exc is None:
        return False
    if isinstance(exc, (CommandInterruptedError, PlaybookInterruptedError, asyncio.CancelledError, KeyboardInterrupt)):
        return True
    cause = exc.__cause__
    if cause is not None and cause is not exc:
        return is_interrupt_error(cause)
    return False


__all__ = [
    "CacheLoadError",
    "CommandError",
    "CommandInterruptedError",
    "CommandNotFoundError",
    "ConfigError",
    "GitError",
    "PlaybookError",
    "PlaybookInterruptedError",
    "RepositoryMissingError",
    "SaltboxError",
    "TagListingError",
    "TagParseError",
    "TagValidationError",
    "is_interrupt_error",
]
