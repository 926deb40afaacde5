from __future__ import annotations

import json
from pathlib import Path
from typing import Dict

from saltbox_cli.cache.models import RepoTagCache
from saltbox_cli.errors import CacheLoadError


def atomic_write_json(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    tmp_path.replace(path)


def _encode_entry(entry: RepoTagCache) -> dict:
    return {
        "commit": entry.commit,
        "tags": list(entry.tags),
    }


def _decode_entry(repo_path: str, payload: object) -> RepoTagCache:
    if not isinstance(payload, dict):
        raise CacheLoadError(f"Cache entry for '{repo_path}' must be an object, got {type(payload).__name__}")
    commit = payload.get("commit")
    tags = payload.get("tags", [])
    if not isinstance(commit, str):
        raise CacheLoadError(f"Cache entry for '{repo_path}' has no string 'commit'")
    if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
        raise CacheLoadError(f"Cache entry for '{repo_path}' has non-string 'tags'")
    return RepoTagCache(commit=commit, tags=list(tags))


def encode_cache(entries: Dict[str, RepoTagCache]) -> dict:
    return {repo_path: _encode_entry(entry) for repo_path, entry in entries.items()}


def decode_cache(payload: object) -> Dict[str, RepoTagCache]:
    if not isinstance(payload, dict):
        raise CacheLoadError(f"Top-level cache JSON must be an object, got {type(payload).__name__}")
    return {repo_path: _decode_entry(repo_path, entry) for repo_path, entry in payload.items()}


def read_cache_file(path: Path) -> Dict[str, RepoTagCache]:
    if not path.exists():
        return {}
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise CacheLoadError(f"Cache file is not valid JSON. path={path} error={e}") from e
    except OSError as e:
        raise CacheLoadError(f"Failed to read cache file. path={path} error={e}") from e
    return decode_cache(payload)
