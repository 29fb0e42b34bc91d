import json

import pytest

from htmlshot.tab import Tab, build_set_content_expression, escape_content, open_tab
from htmlshot.transport import TARGET_EVENT, Response, TargetMessage, TransportError


class FakeTransport:
    def __init__(self, target_results=None, browser_results=None, wrong_reply=False):
        self.target_results = target_results or {}
        self.browser_results = browser_results or {}
        self.wrong_reply = wrong_reply
        self.target_calls = []
        self.browser_calls = []

    async def send(self, command):
        self.browser_calls.append(command)
        if self.wrong_reply:
            return TargetMessage(method=TARGET_EVENT, params={})
        return Response(id=command["id"], result=self.browser_results.get(command["method"], {}))

    async def send_to_target(self, msg_id, session_id, msg):
        payload = json.loads(msg)
        self.target_calls.append((session_id, payload))
        result = self.target_results.get(payload["method"], {})
        inner = json.dumps({"id": msg_id, "result": result})
        return TargetMessage(method=TARGET_EVENT, params={"message": inner})

    def target_methods(self):
        return [p["method"] for _, p in self.target_calls]

    def params_of(self, method):
        return next(p["params"] for _, p in self.target_calls if p["method"] == method)


def test_escape_content_leaves_plain_html_alone():
    html = "<h1>Hello world!</h1>"
    assert escape_content(html) == html


def test_escape_content_replaces_backticks():
    assert escape_content("a`b") == "a${BACKTICK}b"


def test_escape_content_breaks_interpolation():
    assert escape_content("${x}") == "$ {x}"


def test_escape_content_with_both_breaks_all_interpolations():
    escaped = escape_content("`${x}")
    assert "${" not in escaped
    assert "`" not in escaped
    assert escaped.endswith("$ {x}")


def test_expression_embeds_escaped_content_in_raw_template():
    expression = build_set_content_expression("<p>`hi`</p>")
    assert "String.raw`<p>${BACKTICK}hi${BACKTICK}</p>`" in expression
    assert "30000" in expression
    assert "Page loaded successfully" in expression


@pytest.mark.asyncio
async def test_open_tab_creates_and_attaches():
    transport = FakeTransport(
        browser_results={
            "Target.createTarget": {"targetId": "T1"},
            "Target.attachToTarget": {"sessionId": "S1"},
        }
    )
    tab = await open_tab(transport)
    assert (tab.target_id, tab.session_id) == ("T1", "S1")
    assert tab.transport is transport
    create, attach = transport.browser_calls
    assert create["method"] == "Target.createTarget"
    assert create["params"] == {"url": "about:blank"}
    assert attach["method"] == "Target.attachToTarget"
    assert attach["params"] == {"targetId": "T1"}
    assert attach["id"] > create["id"]


@pytest.mark.asyncio
async def test_open_tab_without_target_id_raises():
    transport = FakeTransport(browser_results={"Target.createTarget": {}})
    with pytest.raises(ValueError, match="targetId"):
        await open_tab(transport)


@pytest.mark.asyncio
async def test_open_tab_rejects_unexpected_reply():
    with pytest.raises(TransportError):
        await open_tab(FakeTransport(wrong_reply=True))


@pytest.mark.asyncio
async def test_set_content_evaluates_expression():
    transport = FakeTransport()
    tab = Tab(transport, "S1", "T1")
    html = "<h1>Hello world!</h1>"
    assert await tab.set_content(html) is tab
    session_id, payload = transport.target_calls[0]
    assert session_id == "S1"
    assert payload["method"] == "Runtime.evaluate"
    assert payload["params"] == {
        "expression": build_set_content_expression(html),
        "awaitPromise": True,
    }


@pytest.mark.asyncio
async def test_find_element_queries_document():
    transport = FakeTransport(
        target_results={
            "DOM.getDocument": {"root": {"nodeId": 1}},
            "DOM.querySelector": {"nodeId": 5},
            "DOM.describeNode": {"node": {"backendNodeId": 42}},
        }
    )
    tab = Tab(transport, "S1", "T1")
    element = await tab.find_element("h1")
    assert element.backend_node_id == 42
    assert element.parent is tab
    assert transport.target_methods() == [
        "DOM.getDocument",
        "DOM.querySelector",
        "DOM.describeNode",
    ]
    assert transport.params_of("DOM.querySelector") == {"nodeId": 1, "selector": "h1"}
    assert transport.params_of("DOM.describeNode")["nodeId"] == 5


@pytest.mark.asyncio
async def test_find_element_not_found_raises():
    transport = FakeTransport(target_results={"DOM.getDocument": {"root": {"nodeId": 1}}})
    tab = Tab(transport, "S1", "T1")
    with pytest.raises(LookupError, match="Element not found"):
        await tab.find_element("#missing")


@pytest.mark.asyncio
async def test_goto_navigates():
    transport = FakeTransport()
    tab = Tab(transport, "S1", "T1")
    assert await tab.goto("file:///tmp/page.html") is tab
    assert transport.params_of("Page.navigate") == {"url": "file:///tmp/page.html"}


@pytest.mark.asyncio
async def test_activate_targets_tab():
    transport = FakeTransport()
    tab = Tab(transport, "S1", "T1")
    assert await tab.activate() is tab
    assert transport.params_of("Target.activateTarget") == {"targetId": "T1"}


@pytest.mark.asyncio
async def test_close_closes_target():
    transport = FakeTransport()
    tab = Tab(transport, "S1", "T1")
    await tab.close()
    assert transport.target_methods() == ["Target.closeTarget"]
    assert transport.params_of("Target.closeTarget") == {"targetId": "T1"}
    assert transport.target_calls[0][0] == "S1"