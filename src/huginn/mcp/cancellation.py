"""
Cooperative cancellation for tool handlers.

A token is handed to every handler invocation. Cancellation is advisory: the
executor signals the token on timeout, and the handler is expected to observe
it and stop. Nothing here terminates a running handler.
"""

import asyncio
import logging
from typing import Callable

from huginn.utils.errors import ToolCancelledError

logger = logging.getLogger(__name__)


class CancellationToken:
    """Signal that a running tool handler should stop."""

    def __init__(self):
        self._cancelled = False
        self._callbacks: list[Callable[[], None]] = []
        self._event: asyncio.Event | None = None

    @property
    def is_cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        return self._cancelled

    def cancel(self) -> None:
        """Request cancellation and notify subscribers. Idempotent."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._event is not None:
            self._event.set()

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            self._invoke(callback)

    def on_cancel(self, callback: Callable[[], None]) -> None:
        """Subscribe to cancellation.

        The callback runs immediately if the token is already cancelled.
        """
        if self._cancelled:
            self._invoke(callback)
        else:
            self._callbacks.append(callback)

    def raise_if_cancelled(self) -> None:
        """Raise ToolCancelledError if cancellation was requested."""
        if self._cancelled:
            raise ToolCancelledError("Aborted")

    async def wait(self) -> None:
        """Wait until cancellation is requested."""
        if self._cancelled:
            return
        if self._event is None:
            self._event = asyncio.Event()
        await self._event.wait()

    @staticmethod
    def _invoke(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            logger.error(f"Cancellation callback {callback!r} failed: {e}")

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"<CancellationToken: {state}>"
