"""Elements of a page and screenshots of them."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from htmlshot.protocol import next_id, parse_target_message

if TYPE_CHECKING:
    from htmlshot.tab import Tab

JPEG_QUALITY = 90


async def _call(tab: "Tab", method: str, params: dict[str, Any]) -> dict[str, Any]:
    """Send a command to the tab's session and return the ``result`` of its reply."""
    msg_id = next_id()
    msg = json.dumps({"id": msg_id, "method": method, "params": params})
    reply = await tab.transport.send_to_target(msg_id, tab.session_id, msg)
    inner = parse_target_message(reply.params)
    result = inner.get("result") if isinstance(inner, dict) else None
    return result if isinstance(result, dict) else {}


def _is_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


@dataclass(frozen=True)
class ScreenshotConfig:
    """Image format and, for JPEG, the quality of a screenshot."""

    format: str = "png"
    quality: int | None = None


class Element:
    """A DOM node of a tab, addressed by its backend node id."""

    def __init__(self, parent: "Tab", backend_node_id: int) -> None:
        self.parent = parent
        self.backend_node_id = backend_node_id

    def __repr__(self) -> str:
        return f"Element(backend_node_id={self.backend_node_id})"

    async def box_model_dimensions(self) -> tuple[float, float, float, float]:
        """Return the border box as (top-left x, top-left y, top-right x, bottom-left y)."""
        result = await _call(
            self.parent, "DOM.getBoxModel", {"backendNodeId": self.backend_node_id}
        )
        model = result.get("model")
        if not isinstance(model, dict):
            raise ValueError("Failed to get model")
        border = model.get("border")
        try:
            return (
                float(border[0]),
                float(border[1]),
                float(border[2]),
                float(border[5]),
            )
        except (TypeError, IndexError, ValueError) as exc:
            raise ValueError("Failed to read border of box model") from exc

    async def take_screenshot_with_config(self, config: ScreenshotConfig) -> str:
        """Capture the element's area and return the base64-encoded image."""
        left, top, right, bottom = await self.box_model_dimensions()
        params: dict[str, Any] = {
            "format": config.format,
            "clip": {
                "x": left,
                "y": top,
                "width": right - left,
                "height": bottom - top,
                "scale": 1.0,
            },
            "fromSurface": True,
            "captureBeyondViewport": True,
        }
        if config.format == "jpeg" and config.quality is not None:
            params["quality"] = config.quality

        await self.parent.activate()
        result = await _call(self.parent, "Page.captureScreenshot", params)
        if "data" not in result:
            raise ValueError("Failed to get data")
        data = result["data"]
        if not isinstance(data, str):
            raise ValueError("Failed to convert data to string")
        return data

    async def screenshot(self) -> str:
        """Capture the element as a JPEG of quality 90."""
        return await self.take_screenshot_with_config(
            ScreenshotConfig(format="jpeg", quality=JPEG_QUALITY)
        )

    async def raw_screenshot(self) -> str:
        """Capture the element as a PNG."""
        return await self.take_screenshot_with_config(ScreenshotConfig())


async def describe_element(parent: "Tab", node_id: int) -> Element:
    """Look up the node ``node_id`` in ``parent`` and return it as an element."""
    result = await _call(parent, "DOM.describeNode", {"nodeId": node_id, "depth": 100})
    node = result.get("node")
    if not isinstance(node, dict):
        raise ValueError("Failed to get node")
    if "backendNodeId" not in node:
        raise ValueError("Failed to get backendNodeId")
    backend_node_id = node["backendNodeId"]
    if not _is_id(backend_node_id):
        raise ValueError("Failed to convert backendNodeId to an integer")
    return Element(parent, backend_node_id)