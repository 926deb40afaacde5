"""Commit-keyed cache of Ansible task tags, persisted as one JSON file."""

from saltbox_cli.cache.models import RepoTagCache
from saltbox_cli.cache.store import TagCacheStore

__all__ = ["RepoTagCache", "TagCacheStore"]
