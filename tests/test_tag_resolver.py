import tempfile
import unittest
from pathlib import Path

from saltbox_cli.ansible import TagResolver, parse_task_tags
from saltbox_cli.cache import RepoTagCache, TagCacheStore
from saltbox_cli.errors import (
    CommandInterruptedError,
    GitError,
    RepositoryMissingError,
    TagListingError,
    TagParseError,
)
from saltbox_cli.executor import MockExecutor, OutputMode

ANSIBLE = "/usr/local/bin/ansible-playbook"

LIST_TAGS_OUTPUT = """
playbook: /srv/git/saltbox/saltbox.yml

  play #1 (all): Saltbox	TAGS: []
      TASK TAGS: [plex, sonarr, radarr]
"""


class ParseTaskTagsTests(unittest.TestCase):
    def test_parses_comma_separated_tags(self) -> None:
        self.assertEqual(parse_task_tags("TASK TAGS: [a, b,c ]", "x.yml"), ["a", "b", "c"])

    def test_empty_tag_list(self) -> None:
        self.assertEqual(parse_task_tags("TASK TAGS: []", "x.yml"), [])

    def test_first_occurrence_wins(self) -> None:
        output = "TASK TAGS: [first]\nTASK TAGS: [second]"
        self.assertEqual(parse_task_tags(output, "x.yml"), ["first"])

    def test_missing_marker_names_playbook(self) -> None:
        with self.assertRaises(TagParseError) as ctx:
            parse_task_tags("ERROR! the playbook could not be found", "/srv/git/saltbox/saltbox.yml")
        self.assertIn("/srv/git/saltbox/saltbox.yml", str(ctx.exception))


class TagResolverTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        root = Path(self._tmp.name)
        self.repo = str(root / "saltbox")
        Path(self.repo).mkdir()
        self.playbook = f"{self.repo}/saltbox.yml"
        self.cache_path = root / "cache.json"
        self.cache = TagCacheStore(self.cache_path)
        self.executor = MockExecutor()
        self.resolver = TagResolver(self.executor, self.cache, ansible_playbook=ANSIBLE, uncached_repos=())

    def _head(self, commit: str) -> None:
        self.executor.on("git", "rev-parse", "HEAD", output=f"{commit}\n")

    def _list_tags(self, output: str = LIST_TAGS_OUTPUT) -> None:
        self.executor.on(ANSIBLE, self.playbook, output=output)

    def _playbook_calls(self) -> list:
        return self.executor.calls_for(ANSIBLE)

    async def test_cache_hit_returns_cached_tags_without_running_playbook(self) -> None:
        self.cache.set(self.repo, RepoTagCache(commit="abc123", tags=["x", "y"]))
        self._head("abc123")

        resolution = await self.resolver.resolve(self.repo, self.playbook)

        self.assertEqual(resolution.tags, ["x", "y"])
        self.assertFalse(resolution.rebuilt)
        self.assertEqual(self._playbook_calls(), [])

    async def test_unwritable_cache_still_resolves_tags(self) -> None:
        blocker = Path(self._tmp.name) / "blocker"
        blocker.write_text("", encoding="utf-8")
        cache = TagCacheStore(blocker / "cache.json")
        resolver = TagResolver(self.executor, cache, ansible_playbook=ANSIBLE, uncached_repos=())
        with self.assertLogs("saltbox_cli.cache.store", level="WARNING"):
            cache.set(self.repo, RepoTagCache(commit="abc123", tags=["x", "y"]))
        self._head("abc123")

        with self.assertLogs("saltbox_cli.cache.store", level="WARNING"):
            resolution = await resolver.resolve(self.repo, self.playbook)

        self.assertEqual(resolution.tags, ["x", "y"])
        self.assertFalse(resolution.rebuilt)

    async def test_head_change_rebuilds_and_stores_new_commit(self) -> None:
        self.cache.set(self.repo, RepoTagCache(commit="abc123", tags=["x", "y"]))
        self._head("abc123")
        first = await self.resolver.resolve(self.repo, self.playbook)
        self.assertEqual(first.tags, ["x", "y"])

        self._head("def456")
        self._list_tags("TASK TAGS: [x, y, z]")
        second = await self.resolver.resolve(self.repo, self.playbook)

        self.assertTrue(second.rebuilt)
        self.assertEqual(second.tags, ["x", "y", "z"])
        self.assertEqual(len(self._playbook_calls()), 1)
        stored = TagCacheStore(self.cache_path).get(self.repo)
        self.assertEqual(stored.commit, "def456")
        self.assertEqual(stored.tags, ["x", "y", "z"])

    async def test_miss_runs_list_tags_with_expected_arguments(self) -> None:
        self._head("abc123")
        self._list_tags()

        resolution = await self.resolver.resolve(self.repo, self.playbook, "sanity_check")

        self.assertTrue(resolution.rebuilt)
        self.assertEqual(resolution.tags, ["plex", "sonarr", "radarr"])
        (call,) = self._playbook_calls()
        self.assertEqual(
            list(call.args),
            [self.playbook, "--become", "--list-tags", "--skip-tags=always,sanity_check"],
        )
        self.assertEqual(call.cwd, self.repo)
        self.assertIs(call.output_mode, OutputMode.COMBINED)

    async def test_repeated_resolution_is_idempotent(self) -> None:
        self._head("abc123")
        self._list_tags()

        first = await self.resolver.resolve(self.repo, self.playbook)
        snapshot = self.cache_path.read_text(encoding="utf-8")
        second = await self.resolver.resolve(self.repo, self.playbook)
        third = await self.resolver.resolve(self.repo, self.playbook)

        self.assertEqual(first.tags, second.tags)
        self.assertEqual(second.tags, third.tags)
        self.assertFalse(second.rebuilt)
        self.assertFalse(third.rebuilt)
        self.assertEqual(len(self._playbook_calls()), 1)
        self.assertEqual(self.cache_path.read_text(encoding="utf-8"), snapshot)

    async def test_uncached_repo_always_lists_fresh(self) -> None:
        resolver = TagResolver(self.executor, self.cache, ansible_playbook=ANSIBLE, uncached_repos=(self.repo,))
        self._list_tags()

        await resolver.resolve(self.repo, self.playbook)
        await resolver.resolve(self.repo, self.playbook)

        self.assertEqual(len(self._playbook_calls()), 2)
        self.assertEqual(self.executor.calls_for("git"), [])
        self.assertIsNone(self.cache.get(self.repo))

    async def test_list_tags_never_touches_cache(self) -> None:
        self._list_tags()

        tags = await self.resolver.list_tags(self.repo, self.playbook)

        self.assertEqual(tags, ["plex", "sonarr", "radarr"])
        self.assertFalse(self.cache_path.exists())

    async def test_playbook_failure_is_a_listing_error(self) -> None:
        self._head("abc123")
        self.executor.on(ANSIBLE, self.playbook, output="ERROR! syntax", exit_code=4)

        with self.assertRaises(TagListingError):
            await self.resolver.resolve(self.repo, self.playbook)
        self.assertIsNone(self.cache.get(self.repo))

    async def test_unexpected_output_is_a_parse_error(self) -> None:
        self._head("abc123")
        self._list_tags("playbook: saltbox.yml\n")

        with self.assertRaises(TagParseError):
            await self.resolver.resolve(self.repo, self.playbook)
        self.assertIsNone(self.cache.get(self.repo))

    async def test_interruption_propagates(self) -> None:
        self._head("abc123")
        self.executor.on(ANSIBLE, self.playbook, exit_code=-2)

        with self.assertRaises(CommandInterruptedError):
            await self.resolver.resolve(self.repo, self.playbook)

    async def test_missing_repository_is_reported(self) -> None:
        missing = f"{self._tmp.name}/does-not-exist"
        self.cache.set(missing, RepoTagCache(commit="abc123", tags=[]))
        self.executor.on("git", "rev-parse", stderr="fatal: not a git repository", exit_code=128)

        with self.assertRaises(RepositoryMissingError) as ctx:
            await self.resolver.resolve(missing, f"{missing}/saltbox.yml")
        self.assertIn("incomplete install", str(ctx.exception))

    async def test_git_failure_carries_stderr(self) -> None:
        self.cache.set(self.repo, RepoTagCache(commit="abc123", tags=[]))
        self.executor.on("git", "rev-parse", stderr="fatal: not a git repository", exit_code=128)

        with self.assertRaises(GitError) as ctx:
            await self.resolver.resolve(self.repo, self.playbook)
        self.assertNotIsInstance(ctx.exception, RepositoryMissingError)
        self.assertIn("not a git repository", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
