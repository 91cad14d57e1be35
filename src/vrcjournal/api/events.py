"""Backend push events.

The backend tags every ``log-event`` payload with a ``type`` field; the
``backend-ready`` channel carries no payload. Each tag maps to one frozen
dataclass below. Tags this client does not know are dropped by
:func:`decode_event`.
"""

import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BackendReady:
    """The backend finished its startup (log backlog processed)."""


@dataclass(frozen=True, slots=True)
class LocalPlayerUpdated:
    """The logged-in local account changed or was renamed."""


@dataclass(frozen=True, slots=True)
class InstanceCreated:
    """A new instance visit started."""

    instance_id: int | None = None


@dataclass(frozen=True, slots=True)
class InstanceEnded:
    """An instance visit ended."""

    instance_id: int
    ended_at: str


@dataclass(frozen=True, slots=True)
class PlayerJoined:
    """A player joined the current instance."""

    instance_id: int | None = None


@dataclass(frozen=True, slots=True)
class PlayerLeft:
    """A player left the current instance."""

    instance_id: int | None = None


BackendEvent = (
    BackendReady | LocalPlayerUpdated | InstanceCreated | InstanceEnded | PlayerJoined | PlayerLeft
)


def _optional_id(payload: dict[str, Any]) -> int | None:
    value = payload.get("instance_id")
    return int(value) if value is not None else None


def decode_event(payload: Any) -> BackendEvent | None:
    """Decode a ``log-event`` payload into a typed event.

    Args:
        payload: The raw notification params.

    Returns:
        The decoded event, or None for unknown tags and malformed payloads.
    """
    if not isinstance(payload, dict):
        logger.debug("Ignoring non-object event payload: %r", payload)
        return None

    tag = payload.get("type")
    try:
        match tag:
            case "BackendReady":
                return BackendReady()
            case "LocalPlayerUpdated":
                return LocalPlayerUpdated()
            case "InstanceCreated":
                return InstanceCreated(instance_id=_optional_id(payload))
            case "InstanceEnded":
                return InstanceEnded(
                    instance_id=int(payload["instance_id"]),
                    ended_at=str(payload["ended_at"]),
                )
            case "PlayerJoined":
                return PlayerJoined(instance_id=_optional_id(payload))
            case "PlayerLeft":
                return PlayerLeft(instance_id=_optional_id(payload))
    except (KeyError, TypeError, ValueError) as e:
        logger.debug("Ignoring malformed %s event: %s", tag, e)
        return None

    logger.debug("Ignoring event with unhandled type %r", tag)
    return None
