"""Composition root for the client state layer.

All process-wide state objects are created here, once, and handed to the
views that need them. Nothing in the state layer is a module global.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from PySide6.QtCore import QObject

from vrcjournal.api.client import JournalClient
from vrcjournal.core.bridge import BackendEventBridge, EventHandlers, Subscription
from vrcjournal.core.config import ConfigManager
from vrcjournal.core.controller import Controller
from vrcjournal.core.instances import InstanceCache
from vrcjournal.core.messages import Messages
from vrcjournal.core.notifications import NotificationQueue
from vrcjournal.core.preferences import (
    LocaleStore,
    SystemLocaleQuery,
    ThemeStore,
    UserSelectionStore,
    query_system_locale,
)
from vrcjournal.core.readiness import ReadinessGate

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Owns every state object of the running application.

    Example:
        context = AppContext.create(client, ConfigManager())
        await context.start()
        context.instances.instances_changed.connect(view.set_instances)
        ...
        context.stop()
    """

    client: JournalClient
    config: ConfigManager
    notifications: NotificationQueue
    gate: ReadinessGate
    locale: LocaleStore
    theme: ThemeStore
    users: UserSelectionStore
    messages: Messages
    instances: InstanceCache
    controller: Controller
    bridge: BackendEventBridge
    _subscription: Subscription | None = field(default=None, init=False, repr=False)
    _tasks: set[asyncio.Task[None]] = field(default_factory=set, init=False, repr=False)

    @classmethod
    def create(
        cls,
        client: JournalClient,
        config: ConfigManager,
        *,
        theme_root: QObject | None = None,
        system_locale: SystemLocaleQuery = query_system_locale,
    ) -> "AppContext":
        """Build the state objects and wire their dependencies.

        Args:
            client: Backend client.
            config: Preference storage.
            theme_root: Object receiving the ``data-theme`` property.
            system_locale: OS locale query used when no locale is saved.
        """
        notifications = NotificationQueue()
        gate = ReadinessGate()
        locale = LocaleStore(config, system_locale)
        messages = Messages(lambda: locale.locale)
        return cls(
            client=client,
            config=config,
            notifications=notifications,
            gate=gate,
            locale=locale,
            theme=ThemeStore(config, theme_root),
            users=UserSelectionStore(config, client),
            messages=messages,
            instances=InstanceCache(client, notifications, messages),
            controller=Controller(client, notifications, messages),
            bridge=BackendEventBridge(client, gate),
        )

    @property
    def is_started(self) -> bool:
        """Return True between start() and stop()."""
        return self._subscription is not None and self._subscription.active

    def on_ready(self, callback: Callable[[], Any]) -> Callable[[], None]:
        """Run callback once the backend is ready (see ReadinessGate.on_ready)."""
        return self.gate.on_ready(callback)

    async def start(self) -> None:
        """Initialize preferences, subscribe to events, then load data.

        The event subscription is installed before any fetch so no push
        event is missed between the first load and the subscription.
        """
        if self.is_started:
            return

        await self.locale.init()
        self.theme.init()
        self.users.init()

        self._subscription = await self.bridge.subscribe(
            EventHandlers(
                on_backend_ready=self._on_backend_ready,
                on_local_player_updated=self._on_local_player_updated,
                on_instance_created=self.instances.mark_stale,
                on_instance_ended=self.instances.reconcile_ended,
                on_player_joined=self.instances.mark_stale,
                on_player_left=self.instances.mark_stale,
            )
        )

        if self.gate.is_ready:
            # The ready handler is already loading users and instances
            self.instances.watch(self.users, load_now=False)
            return

        await self.users.load_users()
        self.instances.watch(self.users)

    def stop(self) -> None:
        """Unsubscribe, cancel background loads and drop notifications.

        Nothing started before stop() can change state afterwards.
        """
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self.instances.unwatch()
        self.gate.cancel_pending()
        self.instances.cancel_pending()
        tasks, self._tasks = self._tasks, set()
        for task in tasks:
            task.cancel()
        self.notifications.clear()

    async def _on_backend_ready(self) -> None:
        await self.users.load_users()
        self.instances.schedule_load(self.users.selected_user_id)

    def _on_local_player_updated(self) -> None:
        task = asyncio.get_running_loop().create_task(self.users.load_users())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
