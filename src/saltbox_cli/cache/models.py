from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class RepoTagCache:
    """Task tags discovered for one repository at one commit."""

    commit: str
    tags: list[str] = field(default_factory=list)

    def copy(self) -> "RepoTagCache":
        return RepoTagCache(commit=self.commit, tags=list(self.tags))
