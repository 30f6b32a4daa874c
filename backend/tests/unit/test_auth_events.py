"""Tests for the serialized auth event queue."""

import asyncio

from portal.providers.identity.base import AuthEvent
from portal.services.auth_events import AuthEventQueue, QueuedAuthEvent


class _Recorder:
    def __init__(self, delay: float = 0.0, fail_on: AuthEvent | None = None) -> None:
        self.delay = delay
        self.fail_on = fail_on
        self.log: list[str] = []
        self.active = 0
        self.max_active = 0

    async def __call__(self, item: QueuedAuthEvent) -> None:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        self.log.append(f"start:{item.event.value}")
        try:
            await asyncio.sleep(self.delay)
            if item.event is self.fail_on:
                raise RuntimeError("handler failed")
            self.log.append(f"end:{item.event.value}")
        finally:
            self.active -= 1


async def test_events_handled_in_arrival_order_one_at_a_time():
    recorder = _Recorder(delay=0.01)
    queue = AuthEventQueue(recorder)

    queue.enqueue(AuthEvent.SIGNED_IN)
    queue.enqueue(AuthEvent.TOKEN_REFRESHED)
    queue.enqueue(AuthEvent.SIGNED_OUT)
    await queue.join()

    assert recorder.log == [
        "start:SIGNED_IN",
        "end:SIGNED_IN",
        "start:TOKEN_REFRESHED",
        "end:TOKEN_REFRESHED",
        "start:SIGNED_OUT",
        "end:SIGNED_OUT",
    ]
    assert recorder.max_active == 1
    assert queue.processed == 3
    assert not queue.is_draining


async def test_event_enqueued_mid_drain_joins_the_same_drain():
    recorder = _Recorder(delay=0.01)
    queue = AuthEventQueue(recorder)

    queue.enqueue(AuthEvent.SIGNED_IN)
    await asyncio.sleep(0)
    assert queue.is_draining
    queue.enqueue(AuthEvent.SIGNED_OUT)
    await queue.join()

    assert recorder.log[-1] == "end:SIGNED_OUT"
    assert recorder.max_active == 1


async def test_handler_failure_does_not_stop_the_drain():
    recorder = _Recorder(fail_on=AuthEvent.SIGNED_IN)
    queue = AuthEventQueue(recorder)

    queue.enqueue(AuthEvent.SIGNED_IN)
    queue.enqueue(AuthEvent.SIGNED_OUT)
    await queue.join()

    assert "end:SIGNED_IN" not in recorder.log
    assert recorder.log[-1] == "end:SIGNED_OUT"
    assert queue.processed == 2


async def test_closed_queue_drops_events():
    recorder = _Recorder()
    queue = AuthEventQueue(recorder)
    queue.close()

    queue.enqueue(AuthEvent.SIGNED_IN)
    await queue.join()

    assert recorder.log == []
    assert len(queue) == 0


async def test_session_travels_with_event():
    seen = []

    async def handler(item: QueuedAuthEvent) -> None:
        seen.append(item)

    queue = AuthEventQueue(handler)
    queue.enqueue(AuthEvent.SIGNED_OUT, None)
    await queue.join()

    assert seen == [QueuedAuthEvent(AuthEvent.SIGNED_OUT, None)]
