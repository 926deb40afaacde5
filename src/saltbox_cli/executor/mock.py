from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from saltbox_cli.errors import CommandError, CommandInterruptedError, CommandNotFoundError
from saltbox_cli.executor.interfaces import CommandExecutor, CommandRequest, CommandResult

Response = Union[CommandResult, BaseException, Callable[[CommandRequest], CommandResult]]


@dataclass(slots=True)
class _Rule:
    command: str
    args_prefix: tuple[str, ...]
    response: Response
    delay_seconds: float = 0.0

    def matches(self, request: CommandRequest) -> bool:
        if request.command != self.command:
            return False
        return tuple(request.args[: len(self.args_prefix)]) == self.args_prefix


@dataclass(slots=True)
class MockExecutor(CommandExecutor):
    """
    A scripted executor for tests.

    Rules are matched newest first on the command name plus a prefix of the
    arguments. Unmatched commands behave like a missing binary.
    """

    calls: list[CommandRequest] = field(default_factory=list)
    _rules: list[_Rule] = field(default_factory=list)

    def on(
        self,
        command: str,
        *args_prefix: str,
        output: str = "",
        stderr: str = "",
        exit_code: int = 0,
        response: Optional[Response] = None,
        delay_seconds: float = 0.0,
    ) -> "MockExecutor":
        if response is None:
            response = CommandResult(
                exit_code=exit_code,
                stdout=output.encode(),
                stderr=stderr.encode(),
                combined=(output + stderr).encode(),
            )
        self._rules.insert(0, _Rule(command, tuple(args_prefix), response, delay_seconds))
        return self

    def calls_for(self, command: str, *args_prefix: str) -> list[CommandRequest]:
        rule = _Rule(command, tuple(args_prefix), CommandResult(exit_code=0))
        return [call for call in self.calls if rule.matches(call)]

    async def execute(self, request: CommandRequest) -> CommandResult:
        self.calls.append(request)
        for rule in self._rules:
            if not rule.matches(request):
                continue
            if rule.delay_seconds:
                await asyncio.sleep(rule.delay_seconds)
            response = rule.response
            if isinstance(response, BaseException):
                raise response
            if callable(response):
                response = response(request)
            if response.exit_code < 0:
                raise CommandInterruptedError(
                    f"{request.command} was terminated by signal {-response.exit_code}",
                    command=request.display,
                    exit_code=response.exit_code,
                )
            if response.exit_code != 0:
                raise CommandError(
                    response.format_error(request.display),
                    command=request.display,
                    exit_code=response.exit_code,
                    stderr=response.stderr_text,
                    result=response,
                )
            return response
        raise CommandNotFoundError(
            f"failed to start {request.command}: no scripted response",
            command=request.display,
            exit_code=-1,
        )
