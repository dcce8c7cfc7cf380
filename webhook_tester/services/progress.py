# webhook_tester/services/progress.py
"""
Progress reporting sinks for batch runs.

A sink is a plain callable receiving batch events. Every sink here accepts
calls after it has been closed and silently drops them.
"""

import asyncio
from typing import AsyncIterator, Callable, List, Optional, Type

from webhook_tester.core.setup_logging import setup_default_logging
from webhook_tester.models.models import (
    BatchEvent,
    CompleteEvent,
    ErrorEvent,
    HeartbeatEvent,
    InitEvent,
    ResultEvent,
)

logger = setup_default_logging()

EventSink = Callable[[BatchEvent], None]

_END_OF_STREAM = object()


def format_sse(event: BatchEvent) -> str:
    """Frame one event as a server-sent event chunk."""
    return f"data: {event.model_dump_json(by_alias=True, exclude_none=True)}\n\n"


class StreamEventSink:
    """
    Queue-backed sink feeding a server-sent events response.

    The batch side calls the sink and finish(); the HTTP side iterates stream()
    and calls close() when the client goes away. is_closed() doubles as the
    batch cancellation signal.
    """

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self._finished = False

    def __call__(self, event: BatchEvent) -> None:
        if self._closed or self._finished:
            return
        self._queue.put_nowait(event)

    def is_closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Mark the observer as gone. Pending and future events are dropped."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_END_OF_STREAM)

    def finish(self) -> None:
        """End the stream once every queued event has been delivered."""
        if self._finished or self._closed:
            return
        self._finished = True
        self._queue.put_nowait(_END_OF_STREAM)

    async def stream(self, heartbeat_seconds: float = 15.0) -> AsyncIterator[str]:
        """
        Yield framed events until the batch finishes or the sink is closed.

        A heartbeat event is yielded after each `heartbeat_seconds` of silence.
        """
        while True:
            try:
                item = await asyncio.wait_for(self._queue.get(), timeout=heartbeat_seconds)
            except asyncio.TimeoutError:
                if self._closed:
                    return
                yield format_sse(HeartbeatEvent())
                continue

            if item is _END_OF_STREAM or self._closed:
                return
            yield format_sse(item)


class InMemoryEventSink:
    """Sink recording every event, mostly useful for tests and single runs."""

    def __init__(self):
        self.events: List[BatchEvent] = []
        self._closed = False

    def __call__(self, event: BatchEvent) -> None:
        if self._closed:
            return
        self.events.append(event)

    def close(self) -> None:
        self._closed = True

    def is_closed(self) -> bool:
        return self._closed

    def of_type(self, event_type: Type) -> List[BatchEvent]:
        return [event for event in self.events if isinstance(event, event_type)]


class LoggingEventSink:
    """
    Sink writing batch progress to the application logger.

    Args:
        on_result: Optional callback invoked with the outcome of every result event
    """

    def __init__(self, on_result: Optional[Callable] = None):
        self.on_result = on_result
        self.total = 0
        self.completed = 0
        self.passed = 0
        self.failed = 0

    def __call__(self, event: BatchEvent) -> None:
        if isinstance(event, InitEvent):
            if event.message:
                logger.info(event.message)
            if event.total is not None:
                self.total = event.total
                logger.info(f"Testing {event.total} webhook(s)")
        elif isinstance(event, ResultEvent):
            self.completed += 1
            outcome = event.result
            if outcome.success:
                self.passed += 1
                logger.info(f"PASS {outcome.display_name}: {len(outcome.results)} result(s)")
            else:
                self.failed += 1
                logger.warning(f"FAIL {outcome.display_name}: {outcome.error}")
            logger.info(
                f"Progress: {self.completed}/{self.total} "
                f"({self.passed} passed, {self.failed} failed)"
            )
            if self.on_result is not None:
                self.on_result(outcome)
        elif isinstance(event, CompleteEvent):
            logger.info(
                f"Batch complete: {event.passed} passed, {event.failed} failed, "
                f"{event.total} total"
            )
        elif isinstance(event, ErrorEvent):
            logger.error(f"Batch failed: {event.message}")
