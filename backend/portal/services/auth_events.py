"""Serialized processing of identity-provider auth events.

Events are enqueued the moment they arrive and handled strictly one at a
time, in arrival order, by a single drain task. A second drain is never
started while one is running.
"""

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from portal.providers.identity.base import AuthEvent, AuthSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueuedAuthEvent:
    event: AuthEvent
    session: AuthSession | None = None


AuthEventHandler = Callable[[QueuedAuthEvent], Awaitable[None]]


class AuthEventQueue:
    """Single-consumer FIFO of auth events.

    Args:
        handler: Coroutine function run once per event. Exceptions it raises
            are logged and the drain moves on to the next event.
    """

    def __init__(self, handler: AuthEventHandler) -> None:
        self._handler = handler
        self._pending: deque[QueuedAuthEvent] = deque()
        self._drain_task: asyncio.Task[None] | None = None
        self._closed = False
        self.processed = 0

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def is_draining(self) -> bool:
        return self._drain_task is not None

    def enqueue(self, event: AuthEvent, session: AuthSession | None = None) -> None:
        """Append an event and make sure a drain is running.

        Must be called from inside the running event loop.
        """
        if self._closed:
            logger.debug("Auth event queue closed, dropping %s", event.value)
            return
        self._pending.append(QueuedAuthEvent(event=event, session=session))
        logger.debug("Queued auth event %s (pending=%d)", event.value, len(self._pending))
        if self._drain_task is None:
            self._drain_task = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        try:
            while self._pending:
                item = self._pending.popleft()
                try:
                    await self._handler(item)
                except Exception:
                    logger.exception("Error processing auth event %s", item.event.value)
                self.processed += 1
        finally:
            self._drain_task = None

    async def join(self) -> None:
        """Wait until every queued event has been handled."""
        while self._drain_task is not None:
            await asyncio.shield(self._drain_task)

    def close(self) -> None:
        """Stop accepting events and drop anything not yet started."""
        self._closed = True
        self._pending.clear()
