"""Message ids and decoding of messages relayed from browser targets."""

from __future__ import annotations

import itertools
import json
import threading
from typing import Any

_counter = itertools.count(1)
_counter_lock = threading.Lock()


def next_id() -> int:
    """Return the next process-wide message id, starting at 1."""
    with _counter_lock:
        return next(_counter)


def parse_target_message(params: dict[str, Any]) -> Any:
    """Decode the JSON text held in the ``message`` field of a target event's params."""
    raw = params["message"]
    if not isinstance(raw, str):
        raise TypeError("target message must be a string")
    return json.loads(raw.strip('"'))