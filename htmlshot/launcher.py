"""Starting the browser process and reading its DevTools endpoint."""

from __future__ import annotations

import re
import subprocess
import sys
from typing import IO, Iterable

from htmlshot.config import BrowserConfig

_WS_URL_PATTERN = re.compile(r"listening on (.*/devtools/browser/.*)$")
_CREATE_NO_WINDOW = 0x08000000


class LaunchError(RuntimeError):
    """The browser could not be started or did not report its endpoint."""


def spawn_chrome_process(config: BrowserConfig) -> subprocess.Popen:
    """Start the browser with the config's arguments and a piped stderr."""
    command = [str(config.executable_path), *config.browser_args()]
    extra = {"creationflags": _CREATE_NO_WINDOW} if sys.platform == "win32" else {}
    try:
        return subprocess.Popen(command, stderr=subprocess.PIPE, **extra)
    except OSError as exc:
        raise LaunchError(f"Failed to spawn a Chrome process: {exc}") from exc


def websocket_url_from_lines(lines: Iterable[str | bytes]) -> str | None:
    """Return the DevTools websocket URL from the first line announcing it, if any."""
    for line in lines:
        if isinstance(line, bytes):
            line = line.decode("utf-8", errors="replace")
        match = _WS_URL_PATTERN.search(line.rstrip("\r\n"))
        if match:
            return match.group(1)
    return None


def get_websocket_url(stream: IO) -> str:
    """Read the browser's stderr until it reports its websocket URL."""
    url = websocket_url_from_lines(stream)
    if url is None:
        raise LaunchError("Failed to get ws url")
    return url