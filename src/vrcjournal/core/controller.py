"""Controller - runs fire-and-forget backend actions for views.

The backend opens URLs and folders itself; the only visible result on this
side is a notification telling the user what happened.
"""

import logging

from PySide6.QtCore import QObject

from vrcjournal.api.client import JournalClient
from vrcjournal.core.messages import Messages
from vrcjournal.core.notifications import NotificationQueue
from vrcjournal.models.instance import Instance

logger = logging.getLogger(__name__)


class Controller(QObject):
    """Turns view actions into backend calls and notifications.

    Example:
        controller = Controller(client, notifications, messages)
        await controller.open_invite_url(instance)
        # -> JournalClient.open_invite_url
        # -> NotificationQueue.success("Opened invite URL: https://...")
    """

    def __init__(
        self,
        client: JournalClient,
        notifications: NotificationQueue,
        messages: Messages,
    ) -> None:
        """Initialize the controller.

        Args:
            client: The backend client.
            notifications: Queue receiving result messages.
            messages: Localized message lookup.
        """
        super().__init__()
        self._client = client
        self._notifications = notifications
        self._messages = messages

    async def open_invite_url(self, instance: Instance) -> None:
        """Open the invite link of an instance in the browser."""
        try:
            url = await self._client.open_invite_url(instance.world_id, instance.instance_id)
        except Exception as e:  # noqa: BLE001
            logger.error("Failed to open invite URL for instance %d: %s", instance.id, e)
            self._notifications.error(f"{self._messages.t('common.error')}: {e}")
            return
        self._notifications.success(f"{self._messages.t('notification.inviteOpened')}: {url}")

    async def open_user_page(self, user_id: str) -> None:
        """Open a user's profile page in the browser."""
        try:
            url = await self._client.open_user_page(user_id)
        except Exception as e:  # noqa: BLE001
            logger.error("Failed to open user page for %s: %s", user_id, e)
            self._notifications.error(f"{self._messages.t('common.error')}: {e}")
            return
        self._notifications.success(f"{self._messages.t('notification.userPageOpened')}: {url}")

    async def open_screenshot_directory(self, file_path: str) -> None:
        """Reveal a screenshot in the system file manager."""
        try:
            await self._client.open_screenshot_directory(file_path)
        except Exception as e:  # noqa: BLE001
            logger.error("Failed to open directory for %s: %s", file_path, e)
            self._notifications.error(f"{self._messages.t('error.openDirectory')}: {e}")
