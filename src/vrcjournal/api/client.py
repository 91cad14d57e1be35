"""Async client for the journal backend process.

The backend speaks newline-delimited JSON-RPC 2.0 over a local TCP socket.
Requests map to backend commands; messages without an ``id`` are push
events delivered on named channels.
"""

import asyncio
import json
import logging
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass
from typing import Any, cast

from vrcjournal.api.protocol import (
    BackendError,
    JsonRpcError,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
)
from vrcjournal.models.instance import Instance
from vrcjournal.models.user import LocalUser

logger = logging.getLogger(__name__)

# Type aliases for event handlers
ConnectionHandler = Callable[[], None]
ErrorHandler = Callable[[Exception], None]
ChannelHandler = Callable[[Any], None]
Unlisten = Callable[[], None]

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 7878
DEFAULT_INSTANCE_LIMIT = 100


@dataclass(eq=False)
class _Listener:
    channel: str
    handler: ChannelHandler
    active: bool = True


class JournalClient:
    """Async TCP client for the journal backend.

    Example:
        async with JournalClient("127.0.0.1", 7878) as client:
            unlisten = client.listen("log-event", print)
            users = await client.get_local_users()
            unlisten()
    """

    _DEFAULT_TIMEOUT: float = 10.0

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the client.

        Args:
            host: Backend hostname or IP address.
            port: TCP port.
            timeout: Connection/operation timeout in seconds.
        """
        self._host = host
        self._port = port
        self._timeout = timeout
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._request_id: int = 0
        self._pending: dict[int, asyncio.Future[JsonRpcResponse]] = {}
        self._connected: bool = False
        self._receive_task: asyncio.Task[None] | None = None
        self._listeners: dict[str, list[_Listener]] = {}

        self._on_disconnect: ConnectionHandler | None = None
        self._on_error: ErrorHandler | None = None

    @property
    def host(self) -> str:
        """Return backend host."""
        return self._host

    @property
    def port(self) -> int:
        """Return backend port."""
        return self._port

    @property
    def is_connected(self) -> bool:
        """Return True if connected to the backend."""
        return self._connected and self._reader is not None

    def set_event_handlers(
        self,
        on_disconnect: ConnectionHandler | None = None,
        on_error: ErrorHandler | None = None,
    ) -> None:
        """Set handlers for connection-level events.

        Args:
            on_disconnect: Handler for disconnect events.
            on_error: Handler for receive errors.
        """
        self._on_disconnect = on_disconnect
        self._on_error = on_error

    def listen(self, channel: str, handler: ChannelHandler) -> Unlisten:
        """Register a handler for a push channel.

        Handlers run on the event loop, one notification at a time, in the
        order the notifications were received.

        Args:
            channel: Channel name.
            handler: Called with the notification payload.

        Returns:
            A disposer that removes the handler. Calling it more than once
            is harmless.
        """
        listener = _Listener(channel, handler)
        self._listeners.setdefault(channel, []).append(listener)

        def unlisten() -> None:
            if not listener.active:
                return
            listener.active = False
            listeners = self._listeners.get(channel, [])
            if listener in listeners:
                listeners.remove(listener)

        return unlisten

    def listener_count(self, channel: str) -> int:
        """Return how many handlers are registered on a channel."""
        return len(self._listeners.get(channel, []))

    async def __aenter__(self) -> "JournalClient":
        """Enter async context (connect)."""
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Exit async context (disconnect)."""
        await self.disconnect()

    async def connect(self) -> None:
        """Connect to the backend.

        Raises:
            ConnectionError: If connection fails or times out.
        """
        if self._connected:
            return

        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self._host, self._port, limit=1024 * 1024),
                timeout=self._timeout,
            )
            self._connected = True
            self._receive_task = asyncio.create_task(self._receive_loop())
            logger.info("Connected to backend at %s:%d", self._host, self._port)
        except (OSError, TimeoutError) as e:
            self._connected = False
            self._reader = None
            self._writer = None
            raise ConnectionError(f"Failed to connect to {self._host}:{self._port}: {e}") from e

    async def disconnect(self) -> None:
        """Disconnect from the backend."""
        self._connected = False

        if self._receive_task:
            self._receive_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._receive_task
            self._receive_task = None

        writer, self._writer, self._reader = self._writer, None, None
        if writer is not None:
            writer.close()
            with suppress(OSError, TimeoutError):
                await asyncio.wait_for(writer.wait_closed(), timeout=1.0)

        pending, self._pending = self._pending, {}
        for future in pending.values():
            if not future.done():
                future.set_exception(ConnectionError("Connection closed"))

    async def _receive_loop(self) -> None:
        """Read newline-delimited messages until EOF, error or cancellation."""
        reader = self._reader
        if reader is None:
            return

        try:
            while self._connected:
                try:
                    line = await reader.readline()
                except ValueError as e:
                    # Line longer than the stream limit; skip it
                    self._emit_error(e)
                    continue
                except (asyncio.IncompleteReadError, OSError) as e:
                    logger.debug("Backend read failed: %s", e)
                    break
                if not line:
                    break
                self._handle_line(line)
        except asyncio.CancelledError:
            pass
        finally:
            self._connected = False
            self._emit_disconnect()

    def _handle_line(self, line: bytes) -> None:
        text = line.decode("utf-8", errors="replace").strip()
        if not text:
            return
        try:
            data = json.loads(text)
        except ValueError as e:
            self._emit_error(e)
            return
        if isinstance(data, dict):
            self._handle_message(cast(dict[str, Any], data))

    def _handle_message(self, data: dict[str, Any]) -> None:
        """Route an incoming message to a pending request or to listeners."""
        if "id" not in data and "method" in data:
            notification = JsonRpcNotification.from_dict(data)
            asyncio.get_running_loop().call_soon(self._dispatch, notification)
            return

        response_id = data.get("id")
        if isinstance(response_id, int):
            response = JsonRpcResponse.from_dict(data)
            future = self._pending.pop(response_id, None)
            if future and not future.done():
                future.set_result(response)

    def _dispatch(self, notification: JsonRpcNotification) -> None:
        """Hand a notification to every handler still listening on its channel."""
        for listener in list(self._listeners.get(notification.channel, [])):
            if not listener.active:
                continue
            try:
                listener.handler(notification.payload)
            except Exception:
                logger.exception("Handler for %s failed", notification.channel)

    def _emit_disconnect(self) -> None:
        if self._on_disconnect:
            try:
                asyncio.get_running_loop().call_soon(self._on_disconnect)
            except RuntimeError:
                logger.debug("Cannot emit disconnect: no event loop running")

    def _emit_error(self, error: Exception) -> None:
        if self._on_error:
            try:
                asyncio.get_running_loop().call_soon(self._on_error, error)
            except RuntimeError:
                logger.debug("Cannot emit error: no event loop running")

    def _next_id(self) -> int:
        """Generate next request ID."""
        self._request_id += 1
        return self._request_id

    async def _send(self, request: JsonRpcRequest) -> JsonRpcResponse:
        """Send a request and wait for its response.

        Raises:
            ConnectionError: If not connected or the request times out.
            BackendError: If the backend returns an error.
        """
        if not self.is_connected or self._writer is None:
            raise ConnectionError("Not connected to backend")

        future: asyncio.Future[JsonRpcResponse] = asyncio.get_running_loop().create_future()
        self._pending[request.id] = future

        try:
            message = json.dumps(request.to_dict()) + "\n"
            self._writer.write(message.encode("utf-8"))
            await asyncio.wait_for(self._writer.drain(), timeout=self._timeout)

            response = await asyncio.wait_for(future, timeout=self._timeout)

            if not response.is_success:
                err = response.error or JsonRpcError(-1, "Unknown error")
                raise BackendError(request.method, err)

            return response
        except TimeoutError:
            self._pending.pop(request.id, None)
            raise ConnectionError(f"{request.method} (request {request.id}) timed out") from None
        except Exception:
            self._pending.pop(request.id, None)
            raise

    async def invoke(self, command: str, params: dict[str, Any] | None = None) -> Any:
        """Invoke a backend command.

        Args:
            command: Command name.
            params: Command arguments.

        Returns:
            The command result.

        Raises:
            ConnectionError: If not connected or request times out.
            BackendError: If the backend returns an error.
        """
        request = JsonRpcRequest(id=self._next_id(), method=command, params=params)
        response = await self._send(request)
        return response.result

    # Backend commands

    async def get_instances(
        self, local_user_id: int, limit: int = DEFAULT_INSTANCE_LIMIT
    ) -> list[Instance]:
        """Fetch the most recent instance visits.

        Args:
            local_user_id: Local user filter (ALL_USERS for every user).
            limit: Maximum number of rows.

        Returns:
            Instances, newest first as ordered by the backend.
        """
        result = await self.invoke(
            "get_instances", {"localUserId": local_user_id, "limit": limit}
        )
        return [Instance.from_dict(row) for row in _rows(result)]

    async def get_local_users(self) -> list[LocalUser]:
        """Fetch every local account known to the backend."""
        result = await self.invoke("get_local_users")
        return [LocalUser.from_dict(row) for row in _rows(result)]

    async def is_backend_ready(self) -> bool:
        """Return True if the backend already finished its startup."""
        return bool(await self.invoke("is_backend_ready"))

    async def open_invite_url(self, world_id: str, instance_id: str) -> str:
        """Ask the backend to open the invite URL; returns the URL."""
        result = await self.invoke(
            "open_invite_url", {"worldId": world_id, "instanceId": instance_id}
        )
        return str(result)

    async def open_user_page(self, user_id: str) -> str:
        """Ask the backend to open a user's profile page; returns the URL."""
        result = await self.invoke("open_user_page", {"userId": user_id})
        return str(result)

    async def open_screenshot_directory(self, file_path: str) -> None:
        """Ask the backend to reveal a screenshot in the file manager."""
        await self.invoke("open_screenshot_directory", {"filePath": file_path})


def _rows(result: Any) -> list[dict[str, Any]]:
    """Return the dict rows of a list result, skipping anything else."""
    if not isinstance(result, list):
        logger.warning("Expected a list result, got %s", type(result).__name__)
        return []
    return [cast(dict[str, Any], row) for row in cast(list[Any], result) if isinstance(row, dict)]
