from __future__ import annotations

import logging
from pathlib import Path

from saltbox_cli.errors import CommandError, GitError, RepositoryMissingError
from saltbox_cli.executor.impl import run
from saltbox_cli.executor.interfaces import CommandExecutor, OutputMode

logger = logging.getLogger(__name__)


async def get_commit_hash(executor: CommandExecutor, repo_path: str) -> str:
    """Return the HEAD commit hash of the repository at repo_path."""
    try:
        result = await run(executor, "git", "rev-parse", "HEAD", cwd=repo_path, output_mode=OutputMode.CAPTURE)
    except CommandError as e:
        if not Path(repo_path).exists():
            raise RepositoryMissingError(
                f"the folder '{repo_path}' does not exist. This indicates an incomplete install"
            ) from e
        raise GitError(
            f"error occurred while trying to get the git commit hash for '{repo_path}': {e.stderr.strip() or e}"
        ) from e

    commit = result.stdout_text.strip()
    logger.debug("git.head repo=%s commit=%s", repo_path, commit)
    return commit


__all__ = ["get_commit_hash"]
