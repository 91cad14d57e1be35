"""Test fixtures for vrcjournal tests."""

import os
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest

# Qt must not look for a display in CI
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtCore import QSettings  # noqa: E402

from vrcjournal.api.client import JournalClient  # noqa: E402
from vrcjournal.core.config import ConfigManager  # noqa: E402
from vrcjournal.core.messages import Messages  # noqa: E402
from vrcjournal.core.notifications import NotificationQueue  # noqa: E402
from vrcjournal.models.instance import Instance, InstanceStatus  # noqa: E402
from vrcjournal.models.preferences import Locale  # noqa: E402
from vrcjournal.models.user import LocalUser  # noqa: E402


class FakeChannels:
    """In-memory stand-in for the backend push channels."""

    def __init__(self) -> None:
        self.listeners: dict[str, list[Callable[[Any], None]]] = {}

    def listen(self, channel: str, handler: Callable[[Any], None]) -> Callable[[], None]:
        self.listeners.setdefault(channel, []).append(handler)

        def unlisten() -> None:
            if handler in self.listeners.get(channel, []):
                self.listeners[channel].remove(handler)

        return unlisten

    def emit(self, channel: str, payload: Any = None) -> None:
        for handler in list(self.listeners.get(channel, [])):
            handler(payload)

    def count(self, channel: str) -> int:
        return len(self.listeners.get(channel, []))


@pytest.fixture
def channels() -> FakeChannels:
    """Return fake push channels."""
    return FakeChannels()


@pytest.fixture
def mock_client(channels: FakeChannels) -> Mock:
    """Create a mock backend client wired to the fake channels."""
    client = Mock(spec=JournalClient)
    client.listen.side_effect = channels.listen
    client.is_backend_ready = AsyncMock(return_value=False)
    client.get_instances = AsyncMock(return_value=[])
    client.get_local_users = AsyncMock(return_value=[])
    client.open_invite_url = AsyncMock(return_value="https://vrchat.com/home/launch")
    client.open_user_page = AsyncMock(return_value="https://vrchat.com/home/user/usr_1")
    client.open_screenshot_directory = AsyncMock(return_value=None)
    return client


@pytest.fixture
def config(tmp_path: Path) -> ConfigManager:
    """Return a ConfigManager backed by a throwaway INI file."""
    settings = QSettings(str(tmp_path / "vrcjournal.ini"), QSettings.Format.IniFormat)
    return ConfigManager(settings=settings)


@pytest.fixture
def notifications() -> NotificationQueue:
    """Return an empty notification queue."""
    return NotificationQueue()


@pytest.fixture
def messages() -> Messages:
    """Return an English message lookup."""
    return Messages(lambda: Locale.EN)


def make_instance(instance_id: int, /, **overrides: Any) -> Instance:
    """Build an instance record with sensible defaults."""
    values: dict[str, Any] = {
        "id": instance_id,
        "local_user_id": 1,
        "world_id": f"wrld_{instance_id}",
        "instance_id": f"{instance_id}~public",
        "started_at": "2024-05-01T20:00:00Z",
        "status": InstanceStatus.ACTIVE,
        "world_name": f"World {instance_id}",
        "player_count": 3,
        "screenshot_count": 1,
    }
    values.update(overrides)
    return Instance(**values)


def make_user(user_id: int, name: str = "") -> LocalUser:
    """Build a local user."""
    return LocalUser(id=user_id, display_name=name or f"User {user_id}", user_id=f"usr_{user_id}")
