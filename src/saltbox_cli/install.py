from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from saltbox_cli.ansible.runner import PlaybookRunner, build_tag_args
from saltbox_cli.ansible.tags import TagResolver
from saltbox_cli.config.models import PathSettings
from saltbox_cli.constants import saltbox_mod_playbook_path, saltbox_playbook_path, sandbox_playbook_path
from saltbox_cli.errors import TagValidationError

logger = logging.getLogger(__name__)

MOD_PREFIX = "mod-"
SANDBOX_PREFIX = "sandbox-"
SANDBOX_EXTRA_SKIP_TAGS = "sanity_check"

# Maximum edit distance for a "did you mean" suggestion.
_TYPO_DISTANCE = 2


@dataclass(frozen=True, slots=True)
class TagRoute:
    saltbox: list[str] = field(default_factory=list)
    sandbox: list[str] = field(default_factory=list)
    saltbox_mod: list[str] = field(default_factory=list)


def route_tags(tags: Iterable[str]) -> TagRoute:
    """Split requested tags by repository prefix. Prefixes are stripped."""
    route = TagRoute()
    for tag in tags:
        if tag.startswith(MOD_PREFIX):
            route.saltbox_mod.append(tag[len(MOD_PREFIX) :])
        elif tag.startswith(SANDBOX_PREFIX):
            route.sandbox.append(tag[len(SANDBOX_PREFIX) :])
        else:
            route.saltbox.append(tag)
    return route


def edit_distance(a: str, b: str) -> int:
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + (ca != cb)))
        previous = current
    return previous[-1]


def _closest(tag: str, candidates: Sequence[str]) -> Optional[str]:
    best: Optional[str] = None
    best_distance = _TYPO_DISTANCE + 1
    for candidate in candidates:
        distance = edit_distance(tag, candidate)
        if distance < best_distance:
            best, best_distance = candidate, distance
    return best


class SuggestionKind(enum.Enum):
    OTHER_REPO = "other_repo"
    TYPO = "typo"
    TYPO_OTHER_REPO = "typo_other_repo"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True)
class Suggestion:
    input_tag: str
    kind: SuggestionKind
    repo: str
    suggest_tag: str = ""
    target_repo: str = ""

    def describe(self) -> str:
        if self.kind is SuggestionKind.NOT_FOUND:
            return (
                f"Tag: {self.input_tag} not present in Saltbox or Sandbox\n"
                f"Add: --no-cache if developing your own role"
            )
        first = f"Tag: {self.input_tag} not present in {self.repo}"
        if self.kind is SuggestionKind.OTHER_REPO:
            return f"{first}\nTry: {self.suggest_tag} (from {self.target_repo})"
        if self.kind is SuggestionKind.TYPO:
            return f"{first}\nDid you mean: {self.suggest_tag}"
        return f"{first}\nDid you mean: {self.suggest_tag} (from {self.target_repo})"


def suggest_tags(
    provided: Iterable[str],
    valid: Sequence[str],
    other_valid: Sequence[str],
    *,
    repo: str,
    other_repo: str,
    prefix: str,
    other_prefix: str,
) -> list[Suggestion]:
    """
    One Suggestion per unknown tag, ordered by the tag as typed.

    Precedence: exact match in the other repository, then a close match in
    this repository, then a close match in the other repository.
    """
    suggestions: list[Suggestion] = []
    for tag in provided:
        if tag in valid:
            continue
        typed = prefix + tag
        if tag in other_valid:
            suggestions.append(
                Suggestion(typed, SuggestionKind.OTHER_REPO, repo, other_prefix + tag, other_repo)
            )
            continue
        match = _closest(tag, valid)
        if match is not None:
            suggestions.append(Suggestion(typed, SuggestionKind.TYPO, repo, prefix + match, repo))
            continue
        match = _closest(tag, other_valid)
        if match is not None:
            suggestions.append(
                Suggestion(typed, SuggestionKind.TYPO_OTHER_REPO, repo, other_prefix + match, other_repo)
            )
            continue
        suggestions.append(Suggestion(typed, SuggestionKind.NOT_FOUND, repo))
    suggestions.sort(key=lambda suggestion: suggestion.input_tag)
    return suggestions


def format_suggestions(suggestions: Sequence[Suggestion]) -> str:
    blocks = [suggestion.describe() for suggestion in suggestions]
    return "Tag validation found some issues:\n\n" + "\n\n".join(blocks)


class Installer:
    def __init__(self, resolver: TagResolver, runner: PlaybookRunner, paths: PathSettings = PathSettings()) -> None:
        self._resolver = resolver
        self._runner = runner
        self._paths = paths

    async def saltbox_tags(self) -> list[str]:
        repo = self._paths.saltbox_repo
        return await self._resolver.valid_tags(repo, saltbox_playbook_path(repo))

    async def sandbox_tags(self) -> list[str]:
        repo = self._paths.sandbox_repo
        return await self._resolver.valid_tags(repo, sandbox_playbook_path(repo), SANDBOX_EXTRA_SKIP_TAGS)

    async def saltbox_mod_tags(self) -> list[str]:
        repo = self._paths.saltbox_mod_repo
        return await self._resolver.valid_tags(repo, saltbox_mod_playbook_path(repo))

    async def validate(self, route: TagRoute) -> None:
        if not route.saltbox and not route.sandbox:
            return
        saltbox_valid = await self.saltbox_tags()
        if not saltbox_valid:
            raise TagValidationError("saltbox install appears broken: tags cache missing or empty")
        sandbox_valid = await self.sandbox_tags()

        suggestions = suggest_tags(
            route.saltbox,
            saltbox_valid,
            sandbox_valid,
            repo="Saltbox",
            other_repo="Sandbox",
            prefix="",
            other_prefix=SANDBOX_PREFIX,
        )
        suggestions += suggest_tags(
            route.sandbox,
            sandbox_valid,
            saltbox_valid,
            repo="Sandbox",
            other_repo="Saltbox",
            prefix=SANDBOX_PREFIX,
            other_prefix="",
        )
        if suggestions:
            raise TagValidationError(format_suggestions(suggestions))

    async def install(
        self,
        tags: Sequence[str],
        *,
        skip_tags: Sequence[str] = (),
        extra_vars: Sequence[str] = (),
        no_cache: bool = False,
        verbose: bool = True,
    ) -> None:
        route = route_tags(tags)
        if no_cache:
            logger.debug("install.validation_skipped reason=no_cache")
        else:
            await self.validate(route)

        plan = (
            (self._paths.saltbox_repo, saltbox_playbook_path(self._paths.saltbox_repo), route.saltbox),
            (self._paths.saltbox_mod_repo, saltbox_mod_playbook_path(self._paths.saltbox_mod_repo), route.saltbox_mod),
            (self._paths.sandbox_repo, sandbox_playbook_path(self._paths.sandbox_repo), route.sandbox),
        )
        for repo, playbook, repo_tags in plan:
            if not repo_tags:
                continue
            logger.info("Running playbook. playbook=%s tags=%s", playbook, ",".join(repo_tags))
            args = build_tag_args(repo_tags, skip_tags, extra_vars)
            await self._runner.run(repo, playbook, args, verbose=verbose)


__all__ = [
    "Installer",
    "Suggestion",
    "SuggestionKind",
    "TagRoute",
    "edit_distance",
    "format_suggestions",
    "route_tags",
    "suggest_tags",
]
