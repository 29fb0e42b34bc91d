"""Locating a browser executable and building its command line."""

from __future__ import annotations

import os
import random
import shutil
import socket
import sys
from dataclasses import dataclass
from pathlib import Path

from htmlshot.temp_dir import TempDir


def _flags(prefix: str, *names: str) -> tuple[str, ...]:
    return tuple(f"--{prefix}{name}" for name in names)


def _feature_list(switch: str, *features: str) -> str:
    return f"--{switch}-features={','.join(features)}"


_JS_HEAP_MB = 8 * 1024
_DISK_CACHE_BYTES = 64 * 1024 * 1024

DEFAULT_ARGS: tuple[str, ...] = (
    *_flags("no-", "sandbox", "first-run", "default-browser-check", "experiments", "pings"),
    f"--js-flags=--max-old-space-size={_JS_HEAP_MB}",
    f"--disk-cache-size={_DISK_CACHE_BYTES}",
    *_flags("", "memory-pressure-off", "aggressive-cache-discard"),
    *_flags("disable-", "dev-shm-usage"),
    "--process-per-site",
    *_flags(
        "disable-",
        "hang-monitor",
        "renderer-backgrounding",
        "background-timer-throttling",
        "backgrounding-occluded-windows",
        "sync",
        "breakpad",
        "infobars",
        "extensions",
        "default-apps",
        "notifications",
        "popup-blocking",
        "prompt-on-repost",
        "client-side-phishing-detection",
    ),
    *_flags("enable-", "async-dns", "parallel-downloading"),
    "--ignore-certificate-errors",
    *_flags("disable-", "http-cache", "gpu"),
    "--use-gl=swiftshader",
    "--disable-gpu-compositing",
    "--force-color-profile=srgb",
    "--disable-software-rasterizer",
    _feature_list("disable", "TranslateUI", "BlinkGenPropertyTrees", "AudioServiceOutOfProcess"),
    _feature_list(
        "enable", "NetworkService", "NetworkServiceInProcess", "CalculateNativeWinOcclusion"
    ),
    "--disable-ipc-flooding-protection",
    "--no-zygote",
)

EXECUTABLE_NAMES: tuple[str, ...] = (
    *(f"google-chrome-{channel}" for channel in ("stable", "beta", "dev", "unstable")),
    "chromium",
    "chromium-browser",
    *(f"microsoft-edge-{channel}" for channel in ("stable", "beta", "dev")),
    "chrome",
    "chrome-browser",
    "msedge",
    "microsoft-edge",
)

_MACOS_APPS: tuple[str, ...] = (
    *(f"Google Chrome{suffix}" for suffix in ("", " Beta", " Dev", " Canary")),
    "Chromium",
    *(f"Microsoft Edge{suffix}" for suffix in ("", " Beta", " Dev", " Canary")),
)

MACOS_PATHS: tuple[str, ...] = tuple(
    f"/Applications/{app}.app/Contents/MacOS/{app}" for app in _MACOS_APPS
)

WINDOWS_PATHS: tuple[str, ...] = (
    r"C:\Program Files (x86)\Microsoft\Edge\Application\msedge.exe",
)

_REGISTRY_KEY = r"SOFTWARE\Microsoft\Windows\CurrentVersion\App Paths\chrome.exe"

PORT_RANGE = range(8000, 9000)
TEMP_DIR_PREFIX = "htmlshot"


@dataclass
class BrowserConfig:
    """Settings for launching one browser process."""

    debug_port: int
    temp_dir: TempDir
    executable_path: Path
    headless: bool = True

    def browser_args(self) -> list[str]:
        """Return the command-line arguments for the browser."""
        headless = ["--headless"] if self.headless else []
        return [
            f"--remote-debugging-port={self.debug_port}",
            f"--user-data-dir={self.temp_dir.path()}",
            *DEFAULT_ARGS,
            *headless,
        ]


def default_config() -> BrowserConfig:
    """Build a headless config with a detected browser, a free port and a fresh profile."""
    executable = default_executable()
    port = get_available_port()
    if port is None:
        raise RuntimeError("Failed to get available port")
    return BrowserConfig(
        debug_port=port,
        temp_dir=TempDir(Path.cwd() / "temp", TEMP_DIR_PREFIX),
        executable_path=executable,
    )


def _registry_browser() -> Path | None:
    try:
        import winreg
    except ImportError:
        return None
    try:
        with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, _REGISTRY_KEY) as key:
            value, _ = winreg.QueryValueEx(key, "")
    except OSError:
        return None
    return Path(value)


def _platform_candidates():
    """Yield fixed install locations to probe on the current platform."""
    if sys.platform == "darwin":
        yield from map(Path, MACOS_PATHS)
    elif sys.platform == "win32":
        registry = _registry_browser()
        if registry is not None:
            yield registry
        yield from map(Path, WINDOWS_PATHS)


def default_executable() -> Path:
    """Find a Chrome-family browser, honouring the CHROME environment variable first."""
    override = os.environ.get("CHROME")
    if override and Path(override).exists():
        return Path(override)

    on_path = next(filter(None, map(shutil.which, EXECUTABLE_NAMES)), None)
    if on_path:
        return Path(on_path)

    installed = next((path for path in _platform_candidates() if path.exists()), None)
    if installed is not None:
        return installed

    raise FileNotFoundError("Could not auto detect a chrome executable")


def get_available_port() -> int | None:
    """Return a random free port between 8000 and 8999, or None if none is free."""
    candidates = random.sample(PORT_RANGE, len(PORT_RANGE))
    return next(filter(port_is_available, candidates), None)


def port_is_available(port: int) -> bool:
    """Tell whether a TCP listener can bind 127.0.0.1 on ``port``."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        if sys.platform != "win32":
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind(("127.0.0.1", port))
        except OSError:
            return False
    return True