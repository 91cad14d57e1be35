"""Instance read-model cache kept live by backend events.

The cache is the only owner of the instance list shown by views. It is
replaced wholesale by :meth:`InstanceCache.load` and patched in place by
:meth:`InstanceCache.reconcile_ended`. Every other caller only reads.
"""

import asyncio
import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from PySide6.QtCore import QObject, Signal

from vrcjournal.api.client import DEFAULT_INSTANCE_LIMIT, JournalClient
from vrcjournal.core.messages import Messages
from vrcjournal.core.notifications import NotificationQueue
from vrcjournal.models.instance import Instance, InstanceStatus
from vrcjournal.models.preferences import ALL_USERS

if TYPE_CHECKING:
    from vrcjournal.core.preferences import UserSelectionStore

logger = logging.getLogger(__name__)


class InstanceCache(QObject):
    """Cached instance list with loading and staleness flags.

    Loads are sequence-stamped: only the most recently started load may
    change the list, so a slow response for an old user filter can never
    overwrite a newer one.

    Example:
        cache = InstanceCache(client, notifications, messages)
        cache.instances_changed.connect(view.set_instances)
        cache.watch(user_store)  # loads now and on every selection change
    """

    instances_changed = Signal(object)  # tuple[Instance, ...]
    loading_changed = Signal(bool)
    stale_changed = Signal(bool)

    def __init__(
        self,
        client: JournalClient,
        notifications: NotificationQueue,
        messages: Messages,
        limit: int = DEFAULT_INSTANCE_LIMIT,
    ) -> None:
        """Initialize an empty cache.

        Args:
            client: Backend client used for fetches.
            notifications: Queue receiving load failure messages.
            messages: Localized message lookup.
            limit: Maximum number of instances fetched per load.
        """
        super().__init__()
        self._client = client
        self._notifications = notifications
        self._messages = messages
        self._limit = limit
        self._instances: list[Instance] = []
        self._is_loading = False
        self._is_stale = False
        self._load_seq = 0
        self._user_filter = ALL_USERS
        self._tasks: set[asyncio.Task[None]] = set()
        self._watched: "UserSelectionStore | None" = None

    @property
    def instances(self) -> tuple[Instance, ...]:
        """Return the cached instances in backend order."""
        return tuple(self._instances)

    @property
    def is_loading(self) -> bool:
        """Return True while the latest load is in flight."""
        return self._is_loading

    @property
    def is_stale(self) -> bool:
        """Return True if events arrived that the list does not reflect."""
        return self._is_stale

    @property
    def user_filter(self) -> int:
        """Return the user filter of the latest load."""
        return self._user_filter

    def get(self, instance_id: int) -> Instance | None:
        """Return the cached instance with this id, or None."""
        for instance in self._instances:
            if instance.id == instance_id:
                return instance
        return None

    def _set_loading(self, loading: bool) -> None:
        if self._is_loading != loading:
            self._is_loading = loading
            self.loading_changed.emit(loading)

    def _set_stale(self, stale: bool) -> None:
        if self._is_stale != stale:
            self._is_stale = stale
            self.stale_changed.emit(stale)

    async def load(self, local_user_id: int) -> None:
        """Fetch instances for a user filter and replace the list.

        On failure the previous list is kept and an error notification is
        shown. Results of loads superseded by a later call are discarded.

        Args:
            local_user_id: Local user id, or ALL_USERS.
        """
        self._load_seq += 1
        seq = self._load_seq
        self._user_filter = local_user_id
        self._set_loading(True)

        try:
            result = await self._client.get_instances(local_user_id, self._limit)
        except Exception as e:  # noqa: BLE001
            if seq != self._load_seq:
                logger.debug("Ignoring failure of superseded load %d: %s", seq, e)
                return
            logger.error("Failed to load instances for user %d: %s", local_user_id, e)
            self._notifications.error(f"{self._messages.t('error.instanceLoad')}: {e}")
            return
        else:
            if seq != self._load_seq:
                logger.debug("Discarding superseded load %d (current %d)", seq, self._load_seq)
                return
            self._instances = list(result)
            logger.debug("Loaded %d instances for user %d", len(self._instances), local_user_id)
            self.instances_changed.emit(self.instances)
            self._set_stale(False)
        finally:
            # Cancellation lands here too
            if seq == self._load_seq:
                self._set_loading(False)

    def cancel_pending(self) -> None:
        """Cancel scheduled loads; their results and failures are dropped."""
        # Invalidate in-flight loads even if they were awaited directly
        self._load_seq += 1
        tasks, self._tasks = self._tasks, set()
        for task in tasks:
            task.cancel()
        self._set_loading(False)

    def reconcile_ended(self, instance_id: int, ended_at: str) -> None:
        """Mark a cached instance as completed.

        Unknown ids are ignored: the record may simply not be loaded. This
        never triggers a fetch.

        Args:
            instance_id: Backend id of the instance that ended.
            ended_at: ISO timestamp of the end.
        """
        for index, instance in enumerate(self._instances):
            if instance.id != instance_id:
                continue
            if instance.status.is_terminal and instance.status is not InstanceStatus.COMPLETED:
                logger.info(
                    "Instance %d already %s, ignoring end event", instance_id, instance.status
                )
                return
            self._instances[index] = replace(
                instance, status=InstanceStatus.COMPLETED, ended_at=ended_at
            )
            self.instances_changed.emit(self.instances)
            return

    def mark_stale(self) -> None:
        """Flag that backend events changed data the list does not show yet."""
        self._set_stale(True)

    def schedule_load(self, local_user_id: int) -> None:
        """Start :meth:`load` as a task on the running event loop."""
        self._user_filter = local_user_id
        try:
            task = asyncio.get_running_loop().create_task(self.load(local_user_id))
        except RuntimeError:
            logger.warning("No running event loop; cannot load instances")
            return
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def reload(self) -> None:
        """Reload with the current user filter."""
        self.schedule_load(self._user_filter)

    def watch(self, user_store: "UserSelectionStore", load_now: bool = True) -> None:
        """Load for the current selection and again whenever it changes.

        Args:
            user_store: Store whose selection drives the filter.
            load_now: Also schedule a load for the current selection. When
                False only the filter is recorded.
        """
        self.unwatch()
        user_store.selected_user_changed.connect(self._on_selected_user_changed)
        self._watched = user_store
        if load_now:
            self.schedule_load(user_store.selected_user_id)
        else:
            self._user_filter = user_store.selected_user_id

    def unwatch(self) -> None:
        """Stop following the user selection."""
        if self._watched is not None:
            self._watched.selected_user_changed.disconnect(self._on_selected_user_changed)
            self._watched = None

    def _on_selected_user_changed(self, user_id: int) -> None:
        self.schedule_load(user_id)
