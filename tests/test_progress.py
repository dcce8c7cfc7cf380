import json

import pytest

from webhook_tester.models.models import (
    Artifact,
    CompleteEvent,
    InitEvent,
    ProgressEvent,
    ResultEvent,
    TaskDescriptor,
    TaskOutcome,
)
from webhook_tester.services.progress import (
    InMemoryEventSink,
    LoggingEventSink,
    StreamEventSink,
    format_sse,
)


def _parse(chunk):
    assert chunk.startswith("data: ") and chunk.endswith("\n\n")
    return json.loads(chunk[len("data: "):])


def test_format_sse_frames_camel_case_json():
    outcome = TaskOutcome.failed(TaskDescriptor(webhook_id="wh-1"), "boom", ["Error: boom"], 5)

    payload = _parse(format_sse(ResultEvent(result=outcome)))

    assert payload["type"] == "result"
    assert payload["result"]["webhookId"] == "wh-1"
    assert payload["result"]["success"] is False
    assert payload["result"]["durationMs"] == 5


@pytest.mark.asyncio
async def test_stream_delivers_events_until_finished():
    sink = StreamEventSink()
    sink(InitEvent(total=2))
    sink(ProgressEvent(current=1, total=2, webhook="w"))
    sink.finish()
    sink(CompleteEvent(passed=0, failed=0, total=0))

    chunks = [chunk async for chunk in sink.stream(heartbeat_seconds=1)]

    assert [_parse(chunk)["type"] for chunk in chunks] == ["init", "progress"]


@pytest.mark.asyncio
async def test_closed_stream_drops_events():
    sink = StreamEventSink()
    sink(InitEvent(total=1))
    sink.close()
    sink(InitEvent(total=2))

    chunks = [chunk async for chunk in sink.stream(heartbeat_seconds=1)]

    assert chunks == []
    assert sink.is_closed() is True


@pytest.mark.asyncio
async def test_stream_emits_heartbeat_when_idle():
    sink = StreamEventSink()
    stream = sink.stream(heartbeat_seconds=0.01)

    first = await stream.__anext__()
    sink.finish()
    rest = [chunk async for chunk in stream]

    assert _parse(first) == {"type": "heartbeat"}
    assert all(_parse(chunk)["type"] == "heartbeat" for chunk in rest)


def test_in_memory_sink_filters_by_type_and_ignores_after_close():
    sink = InMemoryEventSink()
    sink(InitEvent(total=1))
    sink(ProgressEvent(current=1, total=1, webhook="w"))
    sink.close()
    sink(CompleteEvent(passed=1, failed=0, total=1))

    assert len(sink.events) == 2
    assert sink.of_type(ProgressEvent)[0].webhook == "w"


def test_logging_sink_counts_results_and_forwards_outcomes():
    seen = []
    sink = LoggingEventSink(on_result=seen.append)
    passed = TaskOutcome.passed(
        TaskDescriptor(webhook_id="a"),
        [Artifact(type="image", url="https://cdn.example.com/a.png")],
        [],
        1,
    )
    failed = TaskOutcome.failed(TaskDescriptor(webhook_id="b"), "boom", [], 1)

    sink(InitEvent(total=2))
    sink(ResultEvent(result=passed))
    sink(ResultEvent(result=failed))
    sink(CompleteEvent(passed=1, failed=1, total=2))

    assert (sink.total, sink.completed, sink.passed, sink.failed) == (2, 2, 1, 1)
    assert seen == [passed, failed]
