"""Backend event bridge: push-channel subscription and typed dispatch.

Subscribing registers on both push channels *before* polling the backend
for readiness, so a ``backend-ready`` event emitted during the poll is
never lost. The readiness gate makes sure the ready handler still runs
only once.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

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
from vrcjournal.api.protocol import CHANNEL_BACKEND_READY, CHANNEL_LOG_EVENT
from vrcjournal.core.readiness import ReadinessGate

logger = logging.getLogger(__name__)


@dataclass
class EventHandlers:
    """Optional callbacks, one per event tag. Missing ones are skipped."""

    on_backend_ready: Callable[[], Any] | None = None
    on_local_player_updated: Callable[[], None] | None = None
    on_instance_created: Callable[[], None] | None = None
    on_instance_ended: Callable[[int, str], None] | None = None
    on_player_joined: Callable[[], None] | None = None
    on_player_left: Callable[[], None] | None = None

    def dispatch_table(self) -> dict[type, Callable[[Any], None]]:
        """Return event class -> handler for every handler that is set."""
        table: dict[type, Callable[[Any], None] | None] = {
            LocalPlayerUpdated: _no_args(self.on_local_player_updated),
            InstanceCreated: _no_args(self.on_instance_created),
            InstanceEnded: _ended(self.on_instance_ended),
            PlayerJoined: _no_args(self.on_player_joined),
            PlayerLeft: _no_args(self.on_player_left),
        }
        return {tag: handler for tag, handler in table.items() if handler is not None}


def _no_args(handler: Callable[[], None] | None) -> Callable[[Any], None] | None:
    if handler is None:
        return None
    return lambda _event: handler()


def _ended(handler: Callable[[int, str], None] | None) -> Callable[[Any], None] | None:
    if handler is None:
        return None
    return lambda event: handler(event.instance_id, event.ended_at)


class Subscription:
    """Handle returned by :meth:`BackendEventBridge.subscribe`.

    Calling :meth:`unsubscribe` (or the object itself) releases both
    channel listeners and the readiness registration. It may be called any
    number of times, including from inside a handler; nothing is
    dispatched after it returns.
    """

    def __init__(self) -> None:
        self._active = True
        self._disposers: list[Callable[[], None]] = []

    @property
    def active(self) -> bool:
        """Return False once unsubscribed."""
        return self._active

    def _add(self, disposer: Callable[[], None]) -> None:
        self._disposers.append(disposer)

    def unsubscribe(self) -> None:
        """Stop receiving events."""
        if not self._active:
            return
        self._active = False
        disposers, self._disposers = self._disposers, []
        for dispose in disposers:
            dispose()

    __call__ = unsubscribe


class BackendEventBridge:
    """Subscribes handlers to the backend's push events.

    Example:
        bridge = BackendEventBridge(client, gate)
        sub = await bridge.subscribe(EventHandlers(on_instance_ended=cache.reconcile_ended))
        ...
        sub.unsubscribe()
    """

    def __init__(self, client: JournalClient, gate: ReadinessGate) -> None:
        """Initialize the bridge.

        Args:
            client: Backend client providing channels and the readiness poll.
            gate: Readiness latch shared by every subscription.
        """
        self._client = client
        self._gate = gate

    @property
    def gate(self) -> ReadinessGate:
        """Return the readiness gate."""
        return self._gate

    async def subscribe(self, handlers: EventHandlers) -> Subscription:
        """Start delivering backend events to handlers.

        Args:
            handlers: Callbacks keyed by event tag.

        Returns:
            The subscription; call ``unsubscribe()`` to stop.
        """
        subscription = Subscription()
        table = handlers.dispatch_table()

        def on_ready_event(_payload: Any) -> None:
            if subscription.active:
                self._gate.mark_ready("event")

        def on_log_event(payload: Any) -> None:
            if not subscription.active:
                return
            event = decode_event(payload)
            if event is not None:
                self._dispatch(subscription, table, event)

        subscription._add(self._client.listen(CHANNEL_BACKEND_READY, on_ready_event))
        subscription._add(self._client.listen(CHANNEL_LOG_EVENT, on_log_event))

        ready_handler = handlers.on_backend_ready
        if ready_handler is not None:

            def on_gate_open() -> Any:
                if subscription.active:
                    return ready_handler()
                return None

            subscription._add(self._gate.on_ready(on_gate_open))

        await self._poll_ready(subscription)
        return subscription

    async def _poll_ready(self, subscription: Subscription) -> None:
        """Ask the backend whether it became ready before we subscribed."""
        try:
            ready = await self._client.is_backend_ready()
        except Exception as e:  # noqa: BLE001
            logger.warning("Failed to check backend ready status: %s", e)
            return

        if ready and subscription.active:
            self._gate.mark_ready("poll")

    def _dispatch(
        self,
        subscription: Subscription,
        table: dict[type, Callable[[Any], None]],
        event: BackendEvent,
    ) -> None:
        if isinstance(event, BackendReady):
            self._gate.mark_ready("event")
            return

        handler = table.get(type(event))
        if handler is None:
            return
        if not subscription.active:
            return
        handler(event)
