from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, Optional

from saltbox_cli.cache.io import atomic_write_json, encode_cache, read_cache_file
from saltbox_cli.cache.models import RepoTagCache
from saltbox_cli.constants import SALTBOX_CACHE_FILE

logger = logging.getLogger(__name__)


class TagCacheStore:
    """
    JSON-file-backed map of repository path to RepoTagCache.

    Every set() rewrites the whole file. The in-memory map is guarded by one
    coarse lock; a second lock serializes writes so the newest snapshot is the
    one left on disk. There is no cross-process locking.
    """

    def __init__(self, path: str | Path = SALTBOX_CACHE_FILE) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._persist_lock = threading.Lock()
        self._entries: Dict[str, RepoTagCache] = read_cache_file(self._path)
        logger.debug("cache.loaded path=%s repos=%d", self._path, len(self._entries))

    @property
    def path(self) -> Path:
        return self._path

    def get(self, repo_path: str) -> Optional[RepoTagCache]:
        with self._lock:
            entry = self._entries.get(repo_path)
            return entry.copy() if entry is not None else None

    def set(self, repo_path: str, entry: RepoTagCache) -> None:
        """
        Store entry in memory and rewrite the cache file.

        A failed write is logged and otherwise ignored: the entry stays usable
        for this process and the next run rebuilds it.
        """
        with self._persist_lock:
            with self._lock:
                self._entries[repo_path] = entry.copy()
                payload = encode_cache(self._entries)
            try:
                atomic_write_json(self._path, payload)
            except OSError as e:
                logger.warning("Failed to save tag cache. path=%s error=%s", self._path, e)
                return
        logger.debug("cache.saved path=%s repo=%s commit=%s tags=%d", self._path, repo_path, entry.commit, len(entry.tags))
