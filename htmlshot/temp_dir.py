"""A uniquely named temporary directory that removes itself."""

from __future__ import annotations

import secrets
import shutil
import string
import weakref
from datetime import datetime
from pathlib import Path

_ALPHANUMERIC = string.ascii_letters + string.digits


def generate_unique_name(prefix: str) -> str:
    """Return ``<prefix>_<YYYYmmdd_HHMMSS>_<8 random alphanumerics>``."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    random_part = "".join(secrets.choice(_ALPHANUMERIC) for _ in range(8))
    return f"{prefix}_{timestamp}_{random_part}"


class TempDir:
    """A directory created under ``base_path`` and deleted on cleanup."""

    def __init__(self, base_path, prefix: str) -> None:
        base = Path(base_path)
        base.mkdir(parents=True, exist_ok=True)
        full_path = base / generate_unique_name(prefix)
        full_path.mkdir()
        self._path = full_path
        self._finalizer = weakref.finalize(self, shutil.rmtree, str(full_path), True)

    def path(self) -> Path:
        """Return the directory's path."""
        return self._path

    @property
    def is_cleaned(self) -> bool:
        return not self._finalizer.alive

    def cleanup(self) -> None:
        """Remove the directory and its contents; later calls do nothing."""
        if not self._finalizer.alive:
            return
        shutil.rmtree(self._path)
        self._finalizer.detach()

    def __enter__(self) -> "TempDir":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def __repr__(self) -> str:
        return f"TempDir({str(self._path)!r})"