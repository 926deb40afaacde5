from __future__ import annotations

import logging
from typing import Optional, Sequence

from saltbox_cli.constants import ANSIBLE_PLAYBOOK_BINARY_PATH, EXIT_CODE_SIGINT
from saltbox_cli.errors import CommandError, CommandInterruptedError, PlaybookError, PlaybookInterruptedError
from saltbox_cli.executor.interfaces import CommandExecutor, CommandRequest, OutputMode
from saltbox_cli.signals import SignalManager

logger = logging.getLogger(__name__)


def build_tag_args(
    tags: Sequence[str] = (),
    skip_tags: Sequence[str] = (),
    extra_vars: Sequence[str] = (),
) -> list[str]:
    args: list[str] = []
    if tags:
        args.append(f"--tags={','.join(tags)}")
    if skip_tags:
        args.append(f"--skip-tags={','.join(skip_tags)}")
    for extra_var in extra_vars:
        args.extend(["--extra-vars", extra_var])
    return args


class PlaybookRunner:
    def __init__(
        self,
        executor: CommandExecutor,
        *,
        ansible_playbook: str = ANSIBLE_PLAYBOOK_BINARY_PATH,
        signals: Optional[SignalManager] = None,
    ) -> None:
        self._executor = executor
        self._ansible_playbook = ansible_playbook
        self._signals = signals

    async def run(
        self,
        repo_path: str,
        playbook_path: str,
        extra_args: Sequence[str] = (),
        *,
        verbose: bool = False,
    ) -> None:
        """
        Run playbook_path with --become plus extra_args from inside repo_path.

        Verbose runs are attached to the terminal. Quiet runs capture output and
        only stderr is surfaced on failure, since stdout is mostly successful
        task noise.
        """
        request = CommandRequest(
            command=self._ansible_playbook,
            args=(playbook_path, "--become", *extra_args),
            cwd=repo_path,
            output_mode=OutputMode.INTERACTIVE if verbose else OutputMode.CAPTURE,
        )
        if verbose:
            print(f"Executing Ansible playbook with command: {request.display}")
        logger.debug("playbook.start command=%s cwd=%s", request.display, repo_path)

        try:
            await self._executor.execute(request)
        except CommandInterruptedError as e:
            if self._signals is not None:
                self._signals.shutdown(EXIT_CODE_SIGINT)
            raise PlaybookInterruptedError(
                "playbook execution interrupted by user",
                playbook_path=playbook_path,
                exit_code=e.exit_code,
            ) from e
        except CommandError as e:
            message = (
                f"Playbook {playbook_path} run failed, scroll up to the failed task to review.\n"
                f"Exit code: {e.exit_code}"
            )
            if not verbose:
                message += f"\nStderr:\n{e.stderr}"
            raise PlaybookError(message, playbook_path=playbook_path, exit_code=e.exit_code, stderr=e.stderr) from e

        logger.info("Playbook executed successfully. playbook=%s", playbook_path)
        if verbose:
            print(f"\nPlaybook {playbook_path} executed successfully.")


__all__ = ["PlaybookRunner", "build_tag_args"]
