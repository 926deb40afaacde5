import asyncio
import os
import signal
import unittest

from saltbox_cli.errors import CommandInterruptedError, SaltboxError, is_interrupt_error
from saltbox_cli.signals import SignalManager


class SignalManagerTests(unittest.IsolatedAsyncioTestCase):
    async def test_exit_code_is_zero_without_shutdown(self) -> None:
        manager = SignalManager()

        self.assertFalse(manager.is_shutdown)
        self.assertEqual(manager.exit_code, 0)

    async def test_shutdown_is_idempotent(self) -> None:
        manager = SignalManager()

        self.assertTrue(manager.shutdown(130))
        self.assertFalse(manager.shutdown(143))

        self.assertEqual(manager.exit_code, 130)
        self.assertTrue(manager.is_shutdown)

    async def test_shutdown_cancels_registered_task(self) -> None:
        manager = SignalManager()
        task = asyncio.create_task(asyncio.sleep(30))
        manager.install(task)
        self.addCleanup(manager.uninstall)

        manager.shutdown(143)

        with self.assertRaises(asyncio.CancelledError):
            await task

    async def test_sigterm_records_143(self) -> None:
        manager = SignalManager()
        task = asyncio.create_task(asyncio.sleep(30))
        manager.install(task)
        self.addCleanup(manager.uninstall)

        os.kill(os.getpid(), signal.SIGTERM)

        with self.assertRaises(asyncio.CancelledError):
            await asyncio.wait_for(task, timeout=5)
        self.assertEqual(manager.exit_code, 143)


class InterruptErrorTests(unittest.TestCase):
    def test_recognises_wrapped_interruptions(self) -> None:
        inner = CommandInterruptedError("killed", command="x", exit_code=-2)
        try:
            try:
                raise inner
            except CommandInterruptedError as e:
                raise SaltboxError("outer") from e
        except SaltboxError as outer:
            self.assertTrue(is_interrupt_error(outer))

    def test_plain_errors_are_not_interruptions(self) -> None:
        self.assertFalse(is_interrupt_error(SaltboxError("nope")))
        self.assertFalse(is_interrupt_error(None))
        self.assertTrue(is_interrupt_error(asyncio.CancelledError()))


if __name__ == "__main__":
    unittest.main()
