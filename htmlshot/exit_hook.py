"""Run a cleanup function when the process ends abnormally or is interrupted."""

from __future__ import annotations

import signal
import sys
import threading
from typing import Callable

_sigint_lock = threading.Lock()
_sigint_installed = False


def _install_sigint(cleanup: Callable[[], None]) -> None:
    global _sigint_installed
    with _sigint_lock:
        if _sigint_installed:
            return
        _sigint_installed = True

        def handler(signum, frame):
            cleanup()
            sys.exit(0)

        try:
            signal.signal(signal.SIGINT, handler)
        except (ValueError, OSError) as exc:
            print(f"Error setting Ctrl-C handler: {exc}", file=sys.stderr)


class ExitHook:
    """Holds a cleanup function run on uncaught exceptions, Ctrl+C, or close."""

    def __init__(self, cleanup: Callable[[], None]) -> None:
        self._cleanup = cleanup
        self._closed = False

    def register(self) -> None:
        """Install the exception hook and, once per process, the Ctrl+C handler."""
        cleanup = self._cleanup
        original = sys.excepthook

        def hook(exc_type, exc, tb):
            cleanup()
            original(exc_type, exc, tb)

        sys.excepthook = hook
        _install_sigint(cleanup)

    def close(self) -> None:
        """Run the cleanup function; later calls do nothing."""
        if self._closed:
            return
        self._closed = True
        self._cleanup()

    def __enter__(self) -> "ExitHook":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()