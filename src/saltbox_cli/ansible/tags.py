from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from saltbox_cli.cache.models import RepoTagCache
from saltbox_cli.cache.store import TagCacheStore
from saltbox_cli.constants import ANSIBLE_PLAYBOOK_BINARY_PATH, SALTBOX_MOD_REPO_PATH
from saltbox_cli.errors import CommandError, TagListingError, TagParseError
from saltbox_cli.executor.impl import run
from saltbox_cli.executor.interfaces import CommandExecutor, OutputMode
from saltbox_cli.git import get_commit_hash

logger = logging.getLogger(__name__)

_TASK_TAGS_RE = re.compile(r"TASK TAGS:\s*\[(.*?)]")


def parse_task_tags(output: str, playbook_path: str) -> list[str]:
    """
    Extract the tag list from `ansible-playbook --list-tags` output.

    Only the first `TASK TAGS: [...]` occurrence is used. An empty list is valid;
    a missing marker means the playbook output is not in the expected format.
    """
    match = _TASK_TAGS_RE.search(output)
    if match is None:
        raise TagParseError(
            f"'TASK TAGS:' not found in the ansible-playbook output. "
            f"Please make sure '{playbook_path}' is formatted correctly"
        )
    raw = match.group(1).strip()
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",")]


def list_tags_args(playbook_path: str, extra_skip_tags: str = "") -> list[str]:
    return [playbook_path, "--become", "--list-tags", f"--skip-tags=always,{extra_skip_tags}"]


@dataclass(frozen=True, slots=True)
class TagResolution:
    tags: list[str]
    # True when ansible-playbook was run, False when cached tags were used.
    rebuilt: bool


class TagResolver:
    def __init__(
        self,
        executor: CommandExecutor,
        cache: TagCacheStore,
        *,
        ansible_playbook: str = ANSIBLE_PLAYBOOK_BINARY_PATH,
        uncached_repos: Optional[Iterable[str]] = None,
    ) -> None:
        self._executor = executor
        self._cache = cache
        self._ansible_playbook = ansible_playbook
        if uncached_repos is None:
            uncached_repos = (SALTBOX_MOD_REPO_PATH,)
        self._uncached_repos = frozenset(uncached_repos)

    async def resolve(self, repo_path: str, playbook_path: str, extra_skip_tags: str = "") -> TagResolution:
        if repo_path in self._uncached_repos:
            logger.debug("tags.uncached_repo repo=%s", repo_path)
            tags = await self.list_tags(repo_path, playbook_path, extra_skip_tags)
            return TagResolution(tags=tags, rebuilt=True)

        cached = self._cache.get(repo_path)
        if cached is not None:
            current_commit = await get_commit_hash(self._executor, repo_path)
            if cached.commit == current_commit:
                logger.debug("tags.cache_hit repo=%s commit=%s", repo_path, current_commit)
                # Write-through on hit so the stored commit stays authoritative.
                refreshed_commit = await get_commit_hash(self._executor, repo_path)
                self._cache.set(repo_path, RepoTagCache(commit=refreshed_commit, tags=cached.tags))
                return TagResolution(tags=list(cached.tags), rebuilt=False)
            logger.debug(
                "tags.cache_stale repo=%s cached_commit=%s current_commit=%s",
                repo_path,
                cached.commit,
                current_commit,
            )
        else:
            logger.debug("tags.cache_miss repo=%s", repo_path)

        tags = await self.list_tags(repo_path, playbook_path, extra_skip_tags)
        current_commit = await get_commit_hash(self._executor, repo_path)
        self._cache.set(repo_path, RepoTagCache(commit=current_commit, tags=tags))
        logger.info("Tag cache rebuilt. repo=%s commit=%s tags=%d", repo_path, current_commit, len(tags))
        return TagResolution(tags=tags, rebuilt=True)

    async def list_tags(self, repo_path: str, playbook_path: str, extra_skip_tags: str = "") -> list[str]:
        """Run ansible-playbook --list-tags without consulting or updating the cache."""
        try:
            result = await run(
                self._executor,
                self._ansible_playbook,
                *list_tags_args(playbook_path, extra_skip_tags),
                cwd=repo_path,
                output_mode=OutputMode.COMBINED,
            )
        except CommandError as e:
            raise TagListingError(f"ansible-playbook failed to list tags for '{playbook_path}': {e}") from e
        return parse_task_tags(result.combined_text, playbook_path)

    async def valid_tags(self, repo_path: str, playbook_path: str, extra_skip_tags: str = "") -> list[str]:
        resolution = await self.resolve(repo_path, playbook_path, extra_skip_tags)
        return resolution.tags


__all__ = ["TagResolution", "TagResolver", "list_tags_args", "parse_task_tags"]
