"""A DevTools websocket connection that matches replies to pending requests."""

from __future__ import annotations

import asyncio
import contextlib
import json
from dataclasses import dataclass
from typing import Any, Union

import websockets
from websockets.exceptions import WebSocketException

from htmlshot.protocol import next_id, parse_target_message

RESPONSE_TIMEOUT = 5.0
TARGET_EVENT = "Target.receivedMessageFromTarget"

_CONNECTION_ERRORS = (WebSocketException, OSError)


class TransportError(RuntimeError):
    """The connection failed, closed, or a reply did not arrive in time."""


@dataclass(frozen=True)
class Response:
    """A direct reply to a browser-level command."""

    id: int
    result: Any


@dataclass(frozen=True)
class TargetMessage:
    """An event carrying a message relayed from a target session."""

    method: str
    params: Any


Reply = Union[Response, TargetMessage]


class Transport:
    """Sends commands over an open websocket and routes replies back by id."""

    def __init__(self, connection, timeout: float = RESPONSE_TIMEOUT) -> None:
        self._connection = connection
        self._timeout = timeout
        self._pending: dict[int, asyncio.Future] = {}
        self._closed = False
        self._shut_down = False
        self._reader = asyncio.get_running_loop().create_task(self._read_loop())

    @property
    def closed(self) -> bool:
        """Whether the connection can no longer carry requests."""
        return self._closed

    async def send(self, command: dict[str, Any]) -> Reply:
        """Send ``command`` and wait for the reply bearing its id."""
        msg_id = int(command["id"])
        future = self._register(msg_id)
        try:
            await self._write(command)
        except TransportError:
            self._discard(msg_id, future)
            raise
        return await self._wait(msg_id, future)

    async def get_target_msg(self, msg_id: int) -> Reply:
        """Wait for the relayed target message whose inner id is ``msg_id``."""
        future = self._register(msg_id)
        return await self._wait(msg_id, future)

    async def send_to_target(self, msg_id: int, session_id: str, msg: str) -> TargetMessage:
        """Forward ``msg`` to a target session and return the target's reply to ``msg_id``."""
        listener = self._register(msg_id)
        command = {
            "id": next_id(),
            "method": "Target.sendMessageToTarget",
            "params": {"sessionId": session_id, "message": msg},
        }
        try:
            await self.send(command)
        except BaseException:
            self._discard(msg_id, listener)
            raise
        reply = await self._wait(msg_id, listener)
        if not isinstance(reply, TargetMessage):
            raise TransportError(f"Unexpected transport response: {reply!r}")
        return reply

    async def shutdown(self) -> None:
        """Ask the browser to close, close the socket and fail any pending requests."""
        if self._shut_down:
            return
        self._shut_down = True
        if not self._closed:
            command = {"id": next_id(), "method": "Browser.close", "params": {}}
            with contextlib.suppress(*_CONNECTION_ERRORS):
                await self._connection.send(json.dumps(command))
        with contextlib.suppress(*_CONNECTION_ERRORS):
            await self._connection.close()
        try:
            await asyncio.wait_for(self._reader, self._timeout)
        except asyncio.TimeoutError:
            pass
        self._closed = True
        self._fail_all(TransportError("Connection closed"))

    def _register(self, msg_id: int) -> asyncio.Future:
        if self._closed:
            raise TransportError("Connection closed")
        future = asyncio.get_running_loop().create_future()
        self._pending[msg_id] = future
        return future

    def _discard(self, msg_id: int, future: asyncio.Future) -> None:
        if self._pending.get(msg_id) is future:
            del self._pending[msg_id]
        future.cancel()

    async def _wait(self, msg_id: int, future: asyncio.Future) -> Reply:
        try:
            return await asyncio.wait_for(future, self._timeout)
        except asyncio.TimeoutError:
            raise TransportError("Timeout while waiting for response") from None
        finally:
            if self._pending.get(msg_id) is future:
                del self._pending[msg_id]

    async def _write(self, command: dict[str, Any]) -> None:
        try:
            await self._connection.send(json.dumps(command))
        except _CONNECTION_ERRORS as exc:
            raise TransportError(f"Connection error: {exc}") from exc

    def _resolve(self, msg_id: int, reply: Reply) -> None:
        future = self._pending.pop(msg_id, None)
        if future is not None and not future.done():
            future.set_result(reply)

    def _fail_all(self, error: TransportError) -> None:
        pending, self._pending = self._pending, {}
        for future in pending.values():
            if not future.done():
                future.set_exception(error)

    def _dispatch(self, text: str) -> None:
        try:
            data = json.loads(text)
        except ValueError:
            return
        if not isinstance(data, dict):
            return
        msg_id = data.get("id")
        if isinstance(msg_id, int) and not isinstance(msg_id, bool) and "result" in data:
            self._resolve(msg_id, Response(id=msg_id, result=data["result"]))
        method = data.get("method")
        if isinstance(method, str) and "params" in data:
            self._handle_target(TargetMessage(method=method, params=data["params"]))

    def _handle_target(self, message: TargetMessage) -> None:
        if message.method != TARGET_EVENT:
            return
        try:
            inner = parse_target_message(message.params)
        except (KeyError, TypeError, ValueError):
            return
        if not isinstance(inner, dict):
            return
        inner_id = inner.get("id")
        if isinstance(inner_id, int) and not isinstance(inner_id, bool):
            self._resolve(inner_id, message)

    async def _read_loop(self) -> None:
        try:
            async for raw in self._connection:
                if isinstance(raw, str):
                    self._dispatch(raw)
        except _CONNECTION_ERRORS as exc:
            self._fail_all(TransportError(f"Connection error: {exc}"))
        finally:
            self._closed = True
            self._fail_all(TransportError("Connection closed"))


async def connect(ws_url: str) -> Transport:
    """Open a websocket to ``ws_url`` and return a running transport over it."""
    try:
        connection = await websockets.connect(ws_url, max_size=None, ping_interval=None)
    except _CONNECTION_ERRORS as exc:
        raise TransportError(f"Failed to connect to {ws_url}: {exc}") from exc
    return Transport(connection)