"""JSON-RPC 2.0 framing for the journal backend connection.

Requests carry a backend command name as ``method``. Push events arrive as
notifications whose ``method`` is the channel name and whose ``params`` is
the event payload.
"""

from dataclasses import dataclass
from typing import Any

# Push channels emitted by the backend
CHANNEL_BACKEND_READY = "backend-ready"
CHANNEL_LOG_EVENT = "log-event"


@dataclass(frozen=True)
class JsonRpcRequest:
    """A JSON-RPC 2.0 request for a backend command.

    Attributes:
        id: Request identifier.
        method: Backend command name (e.g. ``get_instances``).
        params: Command arguments.
    """

    id: int
    method: str
    params: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        result: dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": self.id,
            "method": self.method,
        }
        if self.params is not None:
            result["params"] = self.params
        return result


@dataclass(frozen=True)
class JsonRpcError:
    """Error object of a failed JSON-RPC response.

    Attributes:
        code: Error code.
        message: Error message.
        data: Additional error data.
    """

    code: int
    message: str
    data: Any = None

    def __str__(self) -> str:
        """Return error message representation."""
        if self.data:
            return f"[{self.code}] {self.message}: {self.data}"
        return f"[{self.code}] {self.message}"


@dataclass(frozen=True)
class JsonRpcResponse:
    """A JSON-RPC 2.0 response.

    Attributes:
        id: Request identifier matching the request.
        result: Result data (None if error).
        error: Error data (None if success).
    """

    id: int | None = None
    result: Any = None
    error: JsonRpcError | None = None

    @property
    def is_success(self) -> bool:
        """Return True if response indicates success."""
        return self.error is None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JsonRpcResponse":
        """Create response from JSON dict."""
        error_data = data.get("error")
        error: JsonRpcError | None = None
        if isinstance(error_data, dict):
            error = JsonRpcError(
                code=error_data.get("code", -1),
                message=error_data.get("message", "Unknown error"),
                data=error_data.get("data"),
            )
        elif error_data is not None:
            # Backends returning a bare error string
            error = JsonRpcError(code=-1, message=str(error_data))
        return cls(
            id=data.get("id"),
            result=data.get("result"),
            error=error,
        )


@dataclass(frozen=True)
class JsonRpcNotification:
    """A push event delivered on a named channel.

    Attributes:
        channel: Channel name (``backend-ready``, ``log-event``).
        payload: Event payload, if any.
    """

    channel: str
    payload: Any = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JsonRpcNotification":
        """Create notification from JSON dict."""
        return cls(
            channel=str(data.get("method", "")),
            payload=data.get("params"),
        )


class BackendError(RuntimeError):
    """The backend answered a command with an error object."""

    def __init__(self, command: str, error: JsonRpcError) -> None:
        super().__init__(f"{command} failed: {error}")
        self.command = command
        self.error = error
