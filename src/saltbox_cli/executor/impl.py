from __future__ import annotations

import asyncio
import codecs
import logging
import os
import sys
from typing import IO, Optional

from saltbox_cli.errors import CommandError, CommandInterruptedError, CommandNotFoundError
from saltbox_cli.executor.interfaces import CommandExecutor, CommandRequest, CommandResult, OutputMode

logger = logging.getLogger(__name__)

_READ_CHUNK_BYTES = 4096


def _stdio_for(mode: OutputMode) -> tuple[Optional[int], Optional[int]]:
    if mode is OutputMode.DISCARD:
        return asyncio.subprocess.DEVNULL, asyncio.subprocess.PIPE
    if mode is OutputMode.COMBINED:
        return asyncio.subprocess.PIPE, asyncio.subprocess.STDOUT
    if mode is OutputMode.INTERACTIVE:
        return None, None
    return asyncio.subprocess.PIPE, asyncio.subprocess.PIPE


async def _pump(stream: Optional[asyncio.StreamReader], buffer: bytearray, sink: Optional[IO[str]]) -> None:
    if stream is None:
        return
    # Multibyte characters may straddle chunk boundaries.
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        chunk = await stream.read(_READ_CHUNK_BYTES)
        if sink is not None:
            text = decoder.decode(chunk, final=not chunk)
            if text:
                sink.write(text)
                sink.flush()
        if not chunk:
            return
        buffer.extend(chunk)


async def _terminate(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    try:
        process.kill()
    except ProcessLookupError:
        return
    await process.wait()


class SubprocessExecutor(CommandExecutor):
    """Runs commands as asyncio subprocesses."""

    async def execute(self, request: CommandRequest) -> CommandResult:
        if not request.command:
            raise ValueError("command is required")

        mode = request.output_mode
        stdout_target, stderr_target = _stdio_for(mode)
        if request.stdin is not None:
            stdin_target: Optional[int] = asyncio.subprocess.PIPE
        elif mode is OutputMode.INTERACTIVE:
            stdin_target = None
        else:
            stdin_target = asyncio.subprocess.DEVNULL

        env = None
        if request.env:
            env = {**os.environ, **request.env}

        logger.debug("executor.start command=%s cwd=%s mode=%s", request.display, request.cwd, mode.value)
        try:
            process = await asyncio.create_subprocess_exec(
                request.command,
                *request.args,
                cwd=request.cwd,
                env=env,
                stdin=stdin_target,
                stdout=stdout_target,
                stderr=stderr_target,
            )
        except (FileNotFoundError, PermissionError, NotADirectoryError) as e:
            raise CommandNotFoundError(
                f"failed to start {request.command}: {e}",
                command=request.display,
                exit_code=-1,
            ) from e

        stdout_buf = bytearray()
        stderr_buf = bytearray()
        try:
            if request.stdin is not None and process.stdin is not None:
                process.stdin.write(request.stdin)
                await process.stdin.drain()
                process.stdin.close()

            echo = mode is OutputMode.STREAM
            await asyncio.gather(
                _pump(process.stdout, stdout_buf, sys.stdout if echo else None),
                _pump(process.stderr, stderr_buf, sys.stderr if echo else None),
            )
            exit_code = await process.wait()
        except asyncio.CancelledError:
            logger.debug("executor.cancelled command=%s pid=%s", request.display, process.pid)
            await _terminate(process)
            raise

        stdout = bytes(stdout_buf)
        stderr = bytes(stderr_buf)
        if mode is OutputMode.COMBINED:
            result = CommandResult(exit_code=exit_code, stdout=stdout, stderr=b"", combined=stdout)
        else:
            result = CommandResult(exit_code=exit_code, stdout=stdout, stderr=stderr, combined=stdout + stderr)

        logger.debug("executor.finish command=%s exit_code=%s", request.display, exit_code)

        if exit_code < 0:
            raise CommandInterruptedError(
                f"{request.command} was terminated by signal {-exit_code}",
                command=request.display,
                exit_code=exit_code,
            )
        if exit_code != 0:
            raise CommandError(
                result.format_error(request.display),
                command=request.display,
                exit_code=exit_code,
                stderr=result.stderr_text,
                result=result,
            )
        return result


async def run(
    executor: CommandExecutor,
    command: str,
    *args: str,
    cwd: Optional[str] = None,
    env: Optional[dict[str, str]] = None,
    output_mode: OutputMode = OutputMode.COMBINED,
) -> CommandResult:
    request = CommandRequest(
        command=command,
        args=tuple(args),
        cwd=cwd,
        env=env or {},
        output_mode=output_mode,
    )
    return await executor.execute(request)
