import unittest

from saltbox_cli.ansible import PlaybookRunner, build_tag_args
from saltbox_cli.errors import PlaybookError, PlaybookInterruptedError, is_interrupt_error
from saltbox_cli.executor import MockExecutor, OutputMode
from saltbox_cli.signals import SignalManager

ANSIBLE = "/usr/local/bin/ansible-playbook"
REPO = "/srv/git/saltbox"
PLAYBOOK = "/srv/git/saltbox/saltbox.yml"


class BuildTagArgsTests(unittest.TestCase):
    def test_all_options(self) -> None:
        self.assertEqual(
            build_tag_args(["plex", "sonarr"], ["motd"], ["a=1", "b=2"]),
            ["--tags=plex,sonarr", "--skip-tags=motd", "--extra-vars", "a=1", "--extra-vars", "b=2"],
        )

    def test_empty(self) -> None:
        self.assertEqual(build_tag_args(), [])


class PlaybookRunnerTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.executor = MockExecutor()
        self.signals = SignalManager()
        self.runner = PlaybookRunner(self.executor, ansible_playbook=ANSIBLE, signals=self.signals)

    async def test_quiet_run_captures_output(self) -> None:
        self.executor.on(ANSIBLE, PLAYBOOK, output="ok")

        await self.runner.run(REPO, PLAYBOOK, ["--tags=plex"])

        (call,) = self.executor.calls
        self.assertEqual(list(call.args), [PLAYBOOK, "--become", "--tags=plex"])
        self.assertEqual(call.cwd, REPO)
        self.assertIs(call.output_mode, OutputMode.CAPTURE)

    async def test_verbose_run_is_interactive(self) -> None:
        self.executor.on(ANSIBLE, PLAYBOOK)

        await self.runner.run(REPO, PLAYBOOK, [], verbose=True)

        self.assertIs(self.executor.calls[0].output_mode, OutputMode.INTERACTIVE)

    async def test_quiet_failure_reports_stderr_only(self) -> None:
        self.executor.on(ANSIBLE, PLAYBOOK, output="TASK [ok]", stderr="fatal: role failed", exit_code=2)

        with self.assertRaises(PlaybookError) as ctx:
            await self.runner.run(REPO, PLAYBOOK, [])

        message = str(ctx.exception)
        self.assertIn(PLAYBOOK, message)
        self.assertIn("Exit code: 2", message)
        self.assertIn("fatal: role failed", message)
        self.assertNotIn("TASK [ok]", message)
        self.assertEqual(ctx.exception.exit_code, 2)
        self.assertFalse(self.signals.is_shutdown)

    async def test_verbose_failure_points_to_terminal_output(self) -> None:
        self.executor.on(ANSIBLE, PLAYBOOK, exit_code=2)

        with self.assertRaises(PlaybookError) as ctx:
            await self.runner.run(REPO, PLAYBOOK, [], verbose=True)

        self.assertIn("scroll up to the failed task", str(ctx.exception))
        self.assertNotIsInstance(ctx.exception, PlaybookInterruptedError)

    async def test_signal_death_triggers_shutdown(self) -> None:
        self.executor.on(ANSIBLE, PLAYBOOK, exit_code=-2)

        with self.assertRaises(PlaybookInterruptedError) as ctx:
            await self.runner.run(REPO, PLAYBOOK, [])

        self.assertTrue(is_interrupt_error(ctx.exception))
        self.assertTrue(self.signals.is_shutdown)
        self.assertEqual(self.signals.exit_code, 130)

    async def test_shutdown_keeps_first_exit_code(self) -> None:
        self.signals.shutdown(143)
        self.executor.on(ANSIBLE, PLAYBOOK, exit_code=-15)

        with self.assertRaises(PlaybookInterruptedError):
            await self.runner.run(REPO, PLAYBOOK, [])

        self.assertEqual(self.signals.exit_code, 143)


if __name__ == "__main__":
    unittest.main()
