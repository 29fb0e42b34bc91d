"""Launching a browser and capturing screenshots of HTML through it."""

from __future__ import annotations

import asyncio
import contextlib
import subprocess
import weakref
from typing import Any

from htmlshot.capture_options import CaptureOptions
from htmlshot.config import BrowserConfig, default_config
from htmlshot.launcher import LaunchError, get_websocket_url, spawn_chrome_process
from htmlshot.protocol import next_id
from htmlshot.tab import Tab, open_tab
from htmlshot.temp_dir import TempDir
from htmlshot.transport import Response, TransportError, connect


def _kill_process(process: Any) -> None:
    """Kill ``process`` if it is still running and reap it."""
    with contextlib.suppress(OSError):
        if process.poll() is None:
            process.kill()
        process.wait()


class Browser:
    """A running browser process reached over its DevTools websocket."""

    def __init__(self, transport, process, temp_dir: TempDir) -> None:
        self.transport = transport
        self.process = process
        self.temp_dir = temp_dir
        self._closed = False
        self._finalizer = weakref.finalize(self, _kill_process, process)

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"Browser({state}, temp_dir={self.temp_dir!r})"

    @property
    def is_closed(self) -> bool:
        """Whether :meth:`close` has completed."""
        return self._closed

    async def new_tab(self) -> Tab:
        """Open a blank tab."""
        return await open_tab(self.transport)

    async def close_init_tab(self) -> None:
        """Close the page the browser opened at start-up.

        Only meaningful in headless mode; with a window this closes the browser.
        """
        reply = await self.transport.send(
            {"id": next_id(), "method": "Target.getTargets", "params": {}}
        )
        if not isinstance(reply, Response):
            raise TransportError(f"Unexpected transport response: {reply!r}")
        infos = reply.result.get("targetInfos") if isinstance(reply.result, dict) else None
        if not isinstance(infos, list):
            raise ValueError("Failed to get targetInfos")
        target_id = next(
            (
                info.get("targetId")
                for info in infos
                if isinstance(info, dict) and info.get("type") == "page"
            ),
            None,
        )
        if not isinstance(target_id, str):
            raise LookupError("No page target to close")
        await self.transport.send(
            {
                "id": next_id(),
                "method": "Target.closeTarget",
                "params": {"targetId": target_id},
            }
        )

    async def capture_html(self, html: str, selector: str) -> str:
        """Render ``html`` and return a base64 JPEG of the element matching ``selector``."""
        return await self.capture_html_with_options(html, selector, CaptureOptions())

    async def capture_html_with_options(
        self, html: str, selector: str, options: CaptureOptions
    ) -> str:
        """Render ``html`` and return a base64 image of ``selector``, PNG if ``options.raw_png``."""
        tab = await self.new_tab()
        await tab.set_content(html)
        element = await tab.find_element(selector)
        if options.raw_png:
            data = await element.raw_screenshot()
        else:
            data = await element.screenshot()
        await tab.close()
        return data

    async def close(self) -> None:
        """Shut the connection, kill the process and remove the profile directory."""
        if self._closed:
            return
        await self.transport.shutdown()
        try:
            if self.process.poll() is None:
                self.process.kill()
            await asyncio.to_thread(self.process.wait)
        except OSError as exc:
            raise RuntimeError(f"Failed to kill the browser process: {exc}") from exc
        self._finalizer.detach()
        self.temp_dir.cleanup()
        self._closed = True

    async def __aenter__(self) -> "Browser":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


async def _create_browser(config: BrowserConfig) -> Browser:
    try:
        process = spawn_chrome_process(config)
    except BaseException:
        config.temp_dir.cleanup()
        raise
    try:
        stderr = process.stderr
        if stderr is None:
            raise LaunchError("Failed to get stderr")
        try:
            ws_url = await asyncio.to_thread(get_websocket_url, stderr)
        finally:
            with contextlib.suppress(OSError):
                stderr.close()
        transport = await connect(ws_url)
    except BaseException:
        _kill_process(process)
        config.temp_dir.cleanup()
        raise
    return Browser(transport, process, config.temp_dir)


class BrowserBuilder:
    """Collects launch settings and starts a browser."""

    def __init__(self) -> None:
        self.config = default_config()

    def headless(self, headless: bool) -> "BrowserBuilder":
        """Choose whether the browser runs without a window."""
        self.config.headless = headless
        return self

    async def build(self) -> Browser:
        """Start the browser with the collected settings."""
        return await _create_browser(self.config)


async def launch() -> Browser:
    """Start a headless browser with the default settings."""
    return await BrowserBuilder().build()


async def launch_with_head() -> Browser:
    """Start a browser with a visible window."""
    return await BrowserBuilder().headless(False).build()


_instance: Browser | None = None
_instance_lock: tuple[asyncio.AbstractEventLoop, asyncio.Lock] | None = None


def _lock() -> asyncio.Lock:
    global _instance_lock
    loop = asyncio.get_running_loop()
    if _instance_lock is None or _instance_lock[0] is not loop:
        _instance_lock = (loop, asyncio.Lock())
    return _instance_lock[1]


async def get_instance() -> Browser:
    """Return the shared headless browser, starting it on first use."""
    global _instance
    async with _lock():
        if _instance is None:
            browser = await launch()
            try:
                await browser.close_init_tab()
            except BaseException:
                await browser.close()
                raise
            _instance = browser
        return _instance


async def close_instance() -> bool:
    """Close the shared browser; return whether one was closed successfully."""
    global _instance
    browser, _instance = _instance, None
    if browser is None:
        return False
    try:
        await browser.close()
    except (OSError, RuntimeError):
        return False
    return True