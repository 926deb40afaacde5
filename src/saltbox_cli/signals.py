from __future__ import annotations

import asyncio
import logging
import signal
import threading
from typing import Optional

from saltbox_cli.constants import EXIT_CODE_SIGINT, EXIT_CODE_SIGTERM

logger = logging.getLogger(__name__)

_EXIT_CODES = {
    signal.SIGINT: EXIT_CODE_SIGINT,
    signal.SIGTERM: EXIT_CODE_SIGTERM,
}


class SignalManager:
    """
    Process-wide shutdown coordination.

    SIGINT and SIGTERM record the POSIX exit code (130 / 143) and cancel the
    main task, which in turn kills any in-flight child process. shutdown() is
    idempotent: only the first call records an exit code and cancels.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._is_shutdown = False
        self._exit_code = 0
        self._task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def is_shutdown(self) -> bool:
        with self._lock:
            return self._is_shutdown

    @property
    def exit_code(self) -> int:
        with self._lock:
            return self._exit_code

    def install(self, task: Optional[asyncio.Task] = None) -> None:
        """Register signal handlers on the running loop. task is cancelled on shutdown."""
        self._loop = asyncio.get_running_loop()
        self._task = task
        for sig in _EXIT_CODES:
            try:
                self._loop.add_signal_handler(sig, self._on_signal, sig)
            except (NotImplementedError, RuntimeError):
                logger.debug("Signal handlers are not supported on this platform. signal=%s", sig.name)

    def uninstall(self) -> None:
        if self._loop is None:
            return
        for sig in _EXIT_CODES:
            try:
                self._loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError):
                logger.debug("Signal handler removal failed. signal=%s", sig.name)
        self._loop = None
        self._task = None

    def _on_signal(self, sig: signal.Signals) -> None:
        logger.debug("signal.received signal=%s", sig.name)
        self.shutdown(_EXIT_CODES[sig])

    def shutdown(self, exit_code: int) -> bool:
        """Request shutdown. Returns False when a shutdown was already in progress."""
        with self._lock:
            if self._is_shutdown:
                return False
            self._is_shutdown = True
            self._exit_code = exit_code
        if self._task is not None and not self._task.done():
            self._task.cancel()
        return True


__all__ = ["SignalManager"]
