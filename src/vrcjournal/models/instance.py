"""Instance model: one visit to a world instance, as recorded by the backend."""

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Self

logger = logging.getLogger(__name__)


class InstanceStatus(StrEnum):
    """Lifecycle status of an instance visit."""

    ACTIVE = "active"
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"
    SYNC_FAILED = "sync_failed"

    @classmethod
    def from_string(cls, value: str) -> "InstanceStatus":
        """Parse a backend status string, falling back to ACTIVE."""
        try:
            return cls(value)
        except ValueError:
            logger.warning("Unknown instance status %r, treating as active", value)
            return cls.ACTIVE

    @property
    def is_terminal(self) -> bool:
        """Return True once the visit can no longer change status."""
        return self is not InstanceStatus.ACTIVE


@dataclass(frozen=True, slots=True)
class Instance:
    """A shadow copy of a backend instance record.

    Only ``status`` and ``ended_at`` may change after the record was
    fetched, and only through the instance cache.

    Attributes:
        id: Backend row identifier.
        local_user_id: Local account the visit belongs to.
        world_id: World identifier (``wrld_...``).
        instance_id: Instance identifier within the world.
        started_at: ISO timestamp when the visit started.
        status: Current lifecycle status.
        ended_at: ISO timestamp when the visit ended, if it has.
        world_name: Display name of the world, if known.
        user_name: Display name of the local account.
        player_count: Number of players seen during the visit.
        screenshot_count: Number of screenshots taken during the visit.
    """

    id: int
    local_user_id: int
    world_id: str
    instance_id: str
    started_at: str
    status: InstanceStatus = InstanceStatus.ACTIVE
    ended_at: str | None = None
    world_name: str | None = None
    user_name: str = ""
    player_count: int = 0
    screenshot_count: int = 0

    @property
    def is_active(self) -> bool:
        """Return True while the visit is still in progress."""
        return self.status is InstanceStatus.ACTIVE

    @property
    def display_world(self) -> str:
        """Return world name or world id as fallback."""
        return self.world_name or self.world_id

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create an instance from a backend row (camelCase keys)."""
        return cls(
            id=int(data["id"]),
            local_user_id=int(data.get("localUserId", 0)),
            world_id=str(data.get("worldId", "")),
            instance_id=str(data.get("instanceId", "")),
            started_at=str(data.get("startedAt", "")),
            status=InstanceStatus.from_string(str(data.get("status", "active"))),
            ended_at=data.get("endedAt"),
            world_name=data.get("worldName"),
            user_name=str(data.get("userName", "")),
            player_count=int(data.get("playerCount", 0)),
            screenshot_count=int(data.get("screenshotCount", 0)),
        )
