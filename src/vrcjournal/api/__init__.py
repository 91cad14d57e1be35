"""Backend API: JSON-RPC client, wire protocol and push events."""

from vrcjournal.api.client import JournalClient
from vrcjournal.api.events import (
    BackendEvent,
    BackendReady,
    InstanceCreated,
    InstanceEnded,
    LocalPlayerUpdated,
    PlayerJoined,
    PlayerLeft,
    decode_event,
)
from vrcjournal.api.protocol import (
    CHANNEL_BACKEND_READY,
    CHANNEL_LOG_EVENT,
    BackendError,
    JsonRpcError,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
)

__all__ = [
    "CHANNEL_BACKEND_READY",
    "CHANNEL_LOG_EVENT",
    "BackendError",
    "BackendEvent",
    "BackendReady",
    "InstanceCreated",
    "InstanceEnded",
    "JournalClient",
    "JsonRpcError",
    "JsonRpcNotification",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "LocalPlayerUpdated",
    "PlayerJoined",
    "PlayerLeft",
    "decode_event",
]
