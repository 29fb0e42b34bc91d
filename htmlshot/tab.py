"""Browser tabs: creating them, loading HTML, finding elements."""

from __future__ import annotations

import json
from typing import Any

from htmlshot.element import Element, _call, _is_id, describe_element
from htmlshot.protocol import next_id
from htmlshot.transport import Response, TransportError

_CONTENT_MARKER = "__HTMLSHOT_CONTENT__"

_SET_CONTENT_TEMPLATE = """
    (async () => {
        try {
            const BACKTICK = '`';
            document.open();
            document.write(String.raw`__HTMLSHOT_CONTENT__`);
            document.close();

            await Promise.race([
                new Promise((resolve) => {
                    const checkResources = async () => {
                        if (document.readyState !== 'complete') {
                            return false;
                        }

                        const images = Array.from(document.images);
                        const imagePromises = images.map(img => {
                            if (img.complete) return Promise.resolve();
                            return new Promise(resolve => {
                                img.onload = resolve;
                                img.onerror = resolve;
                            });
                        });

                        const styleSheets = Array.from(document.styleSheets);
                        const stylePromises = styleSheets.map(sheet => {
                            if (!sheet.href) return Promise.resolve();
                            return new Promise(resolve => {
                                const link = document.querySelector(`link[href="${sheet.href}"]`);
                                if (link.sheet) resolve();
                                else {
                                    link.onload = resolve;
                                    link.onerror = resolve;
                                }
                            });
                        });

                        await Promise.all([...imagePromises, ...stylePromises]);

                        return new Promise(resolve => {
                            requestAnimationFrame(() => {
                                requestAnimationFrame(resolve);
                            });
                        });
                    };

                    checkResources().then(resolved => {
                        if (!resolved) {
                            window.addEventListener('load', () => {
                                checkResources().then(resolve);
                            });
                        } else {
                            resolve(true);
                        }
                    });
                }),

                new Promise((_, reject) => {
                    setTimeout(() => reject(new Error('Timeout')), 30000);
                })
            ]);

            return 'Page loaded successfully';
        } catch (error) {
            throw new Error(`Failed to set content: ${error.message}`);
        }
    })();
    """


def escape_content(content: str) -> str:
    """Make ``content`` safe to embed in a JavaScript raw template literal."""
    has_backtick = "`" in content
    has_interpolation = "${" in content
    if has_backtick:
        content = content.replace("`", "${BACKTICK}")
    if has_interpolation:
        content = content.replace("${", "$ {")
    return content


def build_set_content_expression(content: str) -> str:
    """Return the script that writes ``content`` into the page and waits for it to load."""
    return _SET_CONTENT_TEMPLATE.replace(_CONTENT_MARKER, escape_content(content))


async def _browser_call(transport, method: str, params: dict[str, Any]) -> dict[str, Any]:
    reply = await transport.send({"id": next_id(), "method": method, "params": params})
    if not isinstance(reply, Response):
        raise TransportError(f"Unexpected transport response: {reply!r}")
    return reply.result if isinstance(reply.result, dict) else {}


class Tab:
    """A page target attached through a session."""

    def __init__(self, transport, session_id: str, target_id: str) -> None:
        self.transport = transport
        self.session_id = session_id
        self.target_id = target_id

    def __repr__(self) -> str:
        return f"Tab(target_id={self.target_id!r}, session_id={self.session_id!r})"

    async def set_content(self, content: str) -> "Tab":
        """Replace the page's document with ``content`` and wait until it has loaded."""
        await _call(
            self,
            "Runtime.evaluate",
            {"expression": build_set_content_expression(content), "awaitPromise": True},
        )
        return self

    async def find_element(self, selector: str) -> Element:
        """Return the first element matching the CSS ``selector``."""
        document = await _call(self, "DOM.getDocument", {})
        root = document.get("root")
        root_id = root.get("nodeId") if isinstance(root, dict) else None
        if not _is_id(root_id):
            raise ValueError("Failed to get document root")

        found = await _call(
            self, "DOM.querySelector", {"nodeId": root_id, "selector": selector}
        )
        node_id = found.get("nodeId")
        if not _is_id(node_id):
            raise LookupError("Element not found")
        return await describe_element(self, node_id)

    async def activate(self) -> "Tab":
        """Bring the tab to the front."""
        await _call(self, "Target.activateTarget", {"targetId": self.target_id})
        return self

    async def goto(self, url: str) -> "Tab":
        """Start navigating to ``url`` without waiting for the page to load."""
        await _call(self, "Page.navigate", {"url": url})
        return self

    async def close(self) -> None:
        """Close the tab."""
        await _call(self, "Target.closeTarget", {"targetId": self.target_id})


async def open_tab(transport) -> Tab:
    """Create a blank page target, attach to it and return the tab."""
    created = await _browser_call(transport, "Target.createTarget", {"url": "about:blank"})
    target_id = created.get("targetId")
    if not isinstance(target_id, str):
        raise ValueError("Failed to get targetId")

    attached = await _browser_call(
        transport, "Target.attachToTarget", {"targetId": target_id}
    )
    session_id = attached.get("sessionId")
    if not isinstance(session_id, str):
        raise ValueError("Failed to get sessionId")
    return Tab(transport, session_id, target_id)