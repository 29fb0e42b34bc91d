"""Options controlling how HTML is captured."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass


@dataclass(frozen=True)
class CaptureOptions:
    """Configuration for an HTML capture; ``raw_png`` selects PNG over JPEG."""

    raw_png: bool = False

    def with_raw_png(self, raw: bool) -> "CaptureOptions":
        """Return a copy that uses raw PNG (True) or JPEG (False)."""
        return dataclasses.replace(self, raw_png=raw)