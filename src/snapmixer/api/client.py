"""Snapcast JSON-RPC session over TCP.

Snapcast uses raw TCP sockets with JSON-RPC, not WebSocket.
Each message is a JSON-RPC request/response delimited by newlines.

The connection owns the transport and the reconnection machinery. Commands
are fire-and-forget: they are written to the socket and their responses
arrive later as message batches, together with server notifications.
"""

import asyncio
import json
import logging
from collections.abc import Callable
from contextlib import suppress
from dataclasses import replace
from enum import Enum
from typing import Any

from snapmixer.api.protocol import (
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    MessageResult,
)
from snapmixer.models.client import Client
from snapmixer.models.group import Group
from snapmixer.models.server_state import ServerState

logger = logging.getLogger(__name__)

DEFAULT_PORT = 1705


class ConnectionStatus(Enum):
    """Session status transitions reported to the control loop."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    RECONNECT_FAILED = "reconnect_failed"


class SnapcastConnection:
    """Async TCP session for the Snapcast JSON-RPC API.

    Keeps a current :class:`ServerState` snapshot up to date from responses
    and notifications, and reconnects with exponential backoff when the
    connection drops.

    Example:
        connection = SnapcastConnection("192.168.1.100", 1705)
        await connection.connect()
        connection.request_status()
        batch = await connection.recv()
        print(connection.state.groups)
    """

    _DEFAULT_TIMEOUT: float = 10.0
    _BUFFER_LIMIT: int = 1024 * 1024

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        timeout: float = _DEFAULT_TIMEOUT,
        reconnect_delay: float = 2.0,
        max_reconnect_delay: float = 30.0,
    ) -> None:
        """Initialize the connection.

        Args:
            host: Server hostname or IP address.
            port: TCP port (default 1705).
            timeout: Connection timeout in seconds.
            reconnect_delay: Initial delay between reconnection attempts.
            max_reconnect_delay: Upper bound for the reconnection delay.
        """
        self._host = host
        self._port = port
        self._timeout = timeout
        self._reconnect_delay = reconnect_delay
        self._max_reconnect_delay = max_reconnect_delay
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._request_id: int = 0
        self._pending: dict[int, JsonRpcRequest] = {}
        self._state = ServerState()
        self._batches: asyncio.Queue[list[MessageResult]] = asyncio.Queue()
        self._statuses: asyncio.Queue[ConnectionStatus] = asyncio.Queue()
        self._session_task: asyncio.Task[None] | None = None
        self._closing = False

    @property
    def host(self) -> str:
        """Return server host."""
        return self._host

    @property
    def port(self) -> int:
        """Return server port."""
        return self._port

    @property
    def address(self) -> str:
        """Return the server address (host:port)."""
        return f"{self._host}:{self._port}"

    @property
    def is_connected(self) -> bool:
        """Return True if a transport is currently open."""
        return self._writer is not None and not self._closing

    @property
    def state(self) -> ServerState:
        """Return the most recent server snapshot."""
        return self._state

    async def connect(self) -> None:
        """Connect to the server and start the session task.

        Raises:
            ConnectionError: If the initial connection fails.
        """
        if self._session_task is not None:
            return
        await self._open()
        self._statuses.put_nowait(ConnectionStatus.CONNECTED)
        self._session_task = asyncio.create_task(self._session())

    async def close(self) -> None:
        """Stop reconnecting and close the socket."""
        self._closing = True
        if self._session_task:
            self._session_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._session_task
            self._session_task = None
        await self._drop_transport()

    async def recv(self) -> list[MessageResult]:
        """Wait for the next batch of inbound message results."""
        return await self._batches.get()

    async def next_status(self) -> ConnectionStatus:
        """Wait for the next connection status transition."""
        return await self._statuses.get()

    # Fire-and-forget commands

    def request_status(self) -> bool:
        """Request a full status update (Server.GetStatus).

        Returns:
            True if the request was written to the server.
        """
        return self._send("Server.GetStatus")

    def set_client_volume(self, client_id: str, percent: int, muted: bool) -> bool:
        """Set client volume and mute together (Client.SetVolume).

        Args:
            client_id: ID of the client.
            percent: Volume 0-100.
            muted: Whether the client is muted.

        Returns:
            True if the request was written to the server.
        """
        return self._send(
            "Client.SetVolume",
            {"id": client_id, "volume": {"percent": percent, "muted": muted}},
        )

    def set_group_mute(self, group_id: str, muted: bool) -> bool:
        """Set group mute state (Group.SetMute).

        Args:
            group_id: ID of the group.
            muted: Whether to mute the group.

        Returns:
            True if the request was written to the server.
        """
        return self._send("Group.SetMute", {"id": group_id, "mute": muted})

    def _next_id(self) -> int:
        """Generate next request ID."""
        self._request_id += 1
        return self._request_id

    def _send(self, method: str, params: dict[str, Any] | None = None) -> bool:
        """Write a request without waiting for its response."""
        if self._writer is None or self._closing:
            logger.debug("Not connected; dropping %s", method)
            return False

        request = JsonRpcRequest(id=self._next_id(), method=method, params=params)
        try:
            self._writer.write((json.dumps(request.to_dict()) + "\n").encode("utf-8"))
        except OSError as e:
            logger.warning("Failed to send %s: %s", method, e)
            return False
        self._pending[request.id] = request
        logger.debug("Sent %s (id %d)", method, request.id)
        return True

    # Session management

    async def _open(self) -> None:
        """Open the TCP transport.

        Raises:
            ConnectionError: If connection fails or times out.
        """
        try:
            # Large buffer limit: Server.GetStatus responses can be big
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self._host, self._port, limit=self._BUFFER_LIMIT),
                timeout=self._timeout,
            )
        except (OSError, TimeoutError) as e:
            self._reader = None
            self._writer = None
            raise ConnectionError(f"Failed to connect to {self.address}: {e}") from e
        logger.info("Connected to %s", self.address)

    async def _drop_transport(self) -> None:
        """Close the socket and forget pending requests."""
        writer = self._writer
        self._writer = None
        self._reader = None
        self._pending.clear()
        if writer is not None:
            try:
                writer.close()
                await asyncio.wait_for(writer.wait_closed(), timeout=1.0)
            except (OSError, TimeoutError):
                pass

    async def _session(self) -> None:
        """Read until the connection drops, then reconnect, forever."""
        while not self._closing:
            await self._receive_loop()
            if self._closing:
                break
            logger.warning("Connection to %s lost", self.address)
            await self._drop_transport()
            self._statuses.put_nowait(ConnectionStatus.DISCONNECTED)
            await self._reconnect()

    async def _reconnect(self) -> None:
        """Reconnect with exponential backoff."""
        delay = self._reconnect_delay
        while not self._closing:
            await asyncio.sleep(delay)
            try:
                await self._open()
            except ConnectionError as e:
                logger.debug("Reconnection failed: %s", e)
                self._statuses.put_nowait(ConnectionStatus.RECONNECT_FAILED)
                delay = min(delay * 2, self._max_reconnect_delay)
                continue
            self._statuses.put_nowait(ConnectionStatus.CONNECTED)
            return

    async def _receive_loop(self) -> None:
        """Read newline-delimited messages until the transport closes."""
        reader = self._reader
        if reader is None:
            return

        while not self._closing:
            try:
                line = await reader.readline()
            except (OSError, asyncio.IncompleteReadError) as e:
                logger.debug("Read failed: %s", e)
                return
            except ValueError as e:
                # Line exceeded the buffer limit; the stream is out of sync
                logger.warning("Dropping connection after oversized message: %s", e)
                return
            if not line:
                # Server closed connection
                return

            message = line.decode("utf-8", errors="replace").strip()
            if not message:
                continue
            try:
                data = json.loads(message)
            except json.JSONDecodeError as e:
                logger.warning("Ignoring malformed message: %s", e)
                continue

            batch = self.handle_payload(data)
            if batch:
                logger.debug("Received %d message(s)", len(batch))
                self._batches.put_nowait(batch)

    # Inbound message handling

    def handle_payload(self, data: Any) -> list[MessageResult]:
        """Apply a decoded line (single message or JSON-RPC batch).

        Args:
            data: Decoded JSON value.

        Returns:
            One result per message in the payload.
        """
        items: list[Any] = data if isinstance(data, list) else [data]
        results: list[MessageResult] = []
        for item in items:
            if isinstance(item, dict):
                results.append(self._handle_message(item))
        return results

    def _handle_message(self, data: dict[str, Any]) -> MessageResult:
        """Apply one message to the current snapshot."""
        if "id" not in data and "method" in data:
            notification = JsonRpcNotification.from_dict(data)
            return self._apply(notification.method, notification.params, None)

        response = JsonRpcResponse.from_dict(data)
        request = self._pending.pop(response.id, None) if isinstance(response.id, int) else None
        method = request.method if request else "Unknown request"
        if not response.is_success:
            return MessageResult(method, error=f"{method} failed: {response.error}")
        params = request.params if request else None
        return self._apply(method, response.result, params)

    def _apply(self, method: str, payload: Any, request_params: Any) -> MessageResult:
        """Run the state updater registered for a method."""
        updater = _UPDATERS.get(method)
        if updater is None:
            return MessageResult(method)
        try:
            self._state = updater(self._state, payload or {}, request_params or {})
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Could not apply %s: %s", method, e)
            return MessageResult(method, error=f"Could not apply {method}: {e}")
        return MessageResult(method)


# State updaters: (state, payload, request params) -> new state

StateUpdater = Callable[[ServerState, dict[str, Any], dict[str, Any]], ServerState]


def _replace_client(state: ServerState, client_id: str, **changes: Any) -> ServerState:
    clients = [replace(c, **changes) if c.id == client_id else c for c in state.clients]
    return replace(state, clients=clients)


def _replace_group(state: ServerState, group_id: str, **changes: Any) -> ServerState:
    groups = [replace(g, **changes) if g.id == group_id else g for g in state.groups]
    return replace(state, groups=groups)


def _on_status(state: ServerState, payload: dict[str, Any], _: dict[str, Any]) -> ServerState:
    return parse_server_status(payload)


def _on_client_volume(
    state: ServerState, payload: dict[str, Any], request: dict[str, Any]
) -> ServerState:
    client_id = payload.get("id") or request["id"]
    volume = payload["volume"]
    current = state.get_client(client_id)
    if current is None:
        return state
    return _replace_client(
        state,
        client_id,
        volume=max(0, min(100, int(volume.get("percent", current.volume)))),
        muted=bool(volume.get("muted", current.muted)),
    )


def _on_client_name(state: ServerState, payload: dict[str, Any], _: dict[str, Any]) -> ServerState:
    return _replace_client(state, payload["id"], name=str(payload["name"]))


def _on_client_latency(
    state: ServerState, payload: dict[str, Any], _: dict[str, Any]
) -> ServerState:
    return _replace_client(state, payload["id"], latency=int(payload["latency"]))


def _on_client_connection(
    state: ServerState, payload: dict[str, Any], _: dict[str, Any]
) -> ServerState:
    client = _parse_client(payload["client"])
    if state.get_client(client.id) is None:
        return replace(state, clients=[*state.clients, client])
    clients = [client if c.id == client.id else c for c in state.clients]
    return replace(state, clients=clients)


def _on_group_mute(
    state: ServerState, payload: dict[str, Any], request: dict[str, Any]
) -> ServerState:
    group_id = payload.get("id") or request["id"]
    return _replace_group(state, group_id, muted=bool(payload["mute"]))


def _on_group_name(state: ServerState, payload: dict[str, Any], _: dict[str, Any]) -> ServerState:
    return _replace_group(state, payload["id"], name=str(payload["name"]))


def _on_group_stream(
    state: ServerState, payload: dict[str, Any], _: dict[str, Any]
) -> ServerState:
    return _replace_group(state, payload["id"], stream_id=str(payload["stream_id"]))


_UPDATERS: dict[str, StateUpdater] = {
    "Server.GetStatus": _on_status,
    "Server.OnUpdate": _on_status,
    "Client.SetVolume": _on_client_volume,
    "Client.OnVolumeChanged": _on_client_volume,
    "Client.OnNameChanged": _on_client_name,
    "Client.OnLatencyChanged": _on_client_latency,
    "Client.OnConnect": _on_client_connection,
    "Client.OnDisconnect": _on_client_connection,
    "Group.SetMute": _on_group_mute,
    "Group.OnMute": _on_group_mute,
    "Group.OnNameChanged": _on_group_name,
    "Group.OnStreamChanged": _on_group_stream,
}


def _parse_client(c: dict[str, Any]) -> Client:
    """Parse one client object from a Snapcast response."""
    config = c.get("config", {})
    host = c.get("host", {})
    volume = config.get("volume", {})
    return Client(
        id=c.get("id", ""),
        host=host.get("ip", ""),
        name=config.get("name", ""),
        host_name=host.get("name", ""),
        mac=host.get("mac", ""),
        volume=volume.get("percent", 50),
        muted=volume.get("muted", False),
        connected=c.get("connected", True),
        latency=config.get("latency", 0),
        snapclient_version=c.get("snapclient", {}).get("version", ""),
    )


def parse_server_status(data: dict[str, Any]) -> ServerState:
    """Parse a Server.GetStatus result (or Server.OnUpdate params).

    Snapcast's response structure:
    {
      "server": {
        "groups": [{ "id": "...", "name": "...", "clients": [...] }],
        "server": {
          "snapserver": {"version": "..."},
          "host": {"name": "...", "ip": "...", "mac": "..."}
        },
        "streams": [...]
      }
    }

    Args:
        data: Raw result data from server.

    Returns:
        ServerState with parsed models.
    """
    server_data = data.get("server", {})
    inner_server = server_data.get("server", {})

    groups: list[Group] = []
    clients: list[Client] = []
    for g in server_data.get("groups", []):
        clients_data = g.get("clients", [])
        groups.append(
            Group(
                id=g.get("id", ""),
                name=g.get("name", ""),
                stream_id=g.get("stream_id", ""),
                muted=g.get("muted", False),
                client_ids=[c.get("id", "") for c in clients_data],
            )
        )
        clients.extend(_parse_client(c) for c in clients_data)

    return ServerState(
        groups=groups,
        clients=clients,
        version=inner_server.get("snapserver", {}).get("version", ""),
        host=inner_server.get("host", {}).get("name", ""),
    )
