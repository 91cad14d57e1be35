"""One-shot latch for the backend readiness handshake.

The backend can report readiness two ways: the answer to the initial
``is_backend_ready`` poll, or a ``backend-ready`` push event. Either may be
observed first, or both may be observed. The gate turns whichever comes
first into a single transition and ignores the other.
"""

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any

from PySide6.QtCore import QObject, Signal

logger = logging.getLogger(__name__)

ReadyCallback = Callable[[], Any]


class ReadinessGate(QObject):
    """NotReady -> Ready, once per gate.

    Example:
        gate = ReadinessGate()
        gate.on_ready(lambda: print("backend ready"))
        gate.mark_ready("event")  # prints
        gate.mark_ready("poll")   # no-op
    """

    became_ready = Signal()

    def __init__(self) -> None:
        super().__init__()
        self._ready = False
        self._callbacks: list[ReadyCallback] = []
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def is_ready(self) -> bool:
        """Return True once the backend has been observed ready."""
        return self._ready

    def on_ready(self, callback: ReadyCallback) -> Callable[[], None]:
        """Register a callback to run once the backend is ready.

        If the gate is already open the callback runs immediately.

        Args:
            callback: Zero-argument callable; may return an awaitable.

        Returns:
            A disposer that unregisters the callback if it has not run yet.
        """
        if self._ready:
            self._invoke(callback)
            return lambda: None

        self._callbacks.append(callback)

        def dispose() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return dispose

    def mark_ready(self, source: str) -> bool:
        """Record that the backend is ready.

        Args:
            source: Which trigger observed readiness (for logging).

        Returns:
            True if this call opened the gate, False if it was already open.
        """
        if self._ready:
            logger.debug("Backend readiness from %s ignored, already ready", source)
            return False

        self._ready = True
        logger.info("Backend ready (observed via %s)", source)

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            self._invoke(callback)
        self.became_ready.emit()
        return True

    def cancel_pending(self) -> None:
        """Cancel ready callbacks that are still running as tasks."""
        tasks, self._tasks = self._tasks, set()
        for task in tasks:
            task.cancel()

    def _invoke(self, callback: ReadyCallback) -> None:
        try:
            result = callback()
        except Exception:
            logger.exception("Ready callback failed")
            return

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: "asyncio.Task[Any]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Ready callback failed: %s", error, exc_info=error)
