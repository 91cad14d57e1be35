"""Tests for the Controller's backend actions."""

from unittest.mock import Mock

import pytest
from conftest import make_instance

from vrcjournal.core.controller import Controller
from vrcjournal.core.messages import Messages
from vrcjournal.core.notifications import NotificationKind, NotificationQueue
from vrcjournal.models.preferences import Locale


@pytest.fixture
def controller(
    mock_client: Mock, notifications: NotificationQueue, messages: Messages
) -> Controller:
    """Return a controller over the mock client."""
    return Controller(mock_client, notifications, messages)


def _only(notifications: NotificationQueue) -> tuple[NotificationKind, str]:
    (item,) = notifications.notifications
    return item.kind, item.message


class TestOpenInviteUrl:
    """Test opening invite links."""

    @pytest.mark.asyncio
    async def test_success(
        self, controller: Controller, mock_client: Mock, notifications: NotificationQueue
    ) -> None:
        """Test that the backend is called and a success is shown."""
        await controller.open_invite_url(make_instance(1, world_id="wrld_a", instance_id="42"))

        mock_client.open_invite_url.assert_awaited_once_with("wrld_a", "42")
        assert _only(notifications) == (
            NotificationKind.SUCCESS,
            "Opened invite URL: https://vrchat.com/home/launch",
        )

    @pytest.mark.asyncio
    async def test_failure(
        self, controller: Controller, mock_client: Mock, notifications: NotificationQueue
    ) -> None:
        """Test that failures become an error notification."""
        mock_client.open_invite_url.side_effect = RuntimeError("no browser")

        await controller.open_invite_url(make_instance(1))

        assert _only(notifications) == (NotificationKind.ERROR, "Error: no browser")


class TestOpenUserPage:
    """Test opening profile pages."""

    @pytest.mark.asyncio
    async def test_success(
        self, controller: Controller, mock_client: Mock, notifications: NotificationQueue
    ) -> None:
        """Test that a success notification carries the URL."""
        await controller.open_user_page("usr_1")

        mock_client.open_user_page.assert_awaited_once_with("usr_1")
        kind, message = _only(notifications)
        assert kind is NotificationKind.SUCCESS
        assert message.startswith("Opened user page: ")

    @pytest.mark.asyncio
    async def test_japanese_messages(
        self, mock_client: Mock, notifications: NotificationQueue
    ) -> None:
        """Test that notifications follow the current locale."""
        controller = Controller(mock_client, notifications, Messages(lambda: Locale.JA))
        mock_client.open_user_page.side_effect = RuntimeError("x")

        await controller.open_user_page("usr_1")

        assert _only(notifications) == (NotificationKind.ERROR, "エラー: x")


class TestOpenScreenshotDirectory:
    """Test revealing screenshots."""

    @pytest.mark.asyncio
    async def test_success_is_silent(
        self, controller: Controller, mock_client: Mock, notifications: NotificationQueue
    ) -> None:
        """Test that a successful open shows nothing."""
        await controller.open_screenshot_directory("C:/shots/a.png")

        mock_client.open_screenshot_directory.assert_awaited_once_with("C:/shots/a.png")
        assert len(notifications) == 0

    @pytest.mark.asyncio
    async def test_failure(
        self, controller: Controller, mock_client: Mock, notifications: NotificationQueue
    ) -> None:
        """Test that a failed open shows an error."""
        mock_client.open_screenshot_directory.side_effect = FileNotFoundError("gone")

        await controller.open_screenshot_directory("C:/shots/a.png")

        assert _only(notifications) == (NotificationKind.ERROR, "Failed to open folder: gone")
