# webhook_tester/api/routes/tester.py
"""
Tester routes.
Serves the tester page, runs single webhook tests and streams batch runs
as server-sent events.
"""

import asyncio
from typing import AsyncIterator, List, Optional, Set

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, StreamingResponse
from pydantic import ValidationError

from webhook_tester.__version__ import __version__
from webhook_tester.clients.flow_api import FlowApiClient
from webhook_tester.core.config import config
from webhook_tester.core.setup_logging import setup_default_logging
from webhook_tester.models.models import (
    BatchTestRequest,
    ConnectedEvent,
    ErrorEvent,
    SingleTestRequest,
    TaskDescriptor,
)
from webhook_tester.services.batch_service import MISSING_TOKEN_MESSAGE, run_test_all
from webhook_tester.services.progress import StreamEventSink, format_sse
from webhook_tester.services.report_service import templates
from webhook_tester.services.webhook_task import WebhookTask

# Configure logging
logger = setup_default_logging()

router = APIRouter(tags=["Tester"])

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

# Strong references to running batches, dropped when they finish
_running_batches: Set[asyncio.Task] = set()


def build_flow_client() -> FlowApiClient:
    return FlowApiClient.from_config(config)


async def _read_json_body(request: Request) -> Optional[dict]:
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


# ======================================================
# Tester page
# ======================================================


@router.get(
    "/",
    response_class=HTMLResponse,
    summary="Tester page",
    description="Web page running single and batch webhook tests",
)
async def tester_page(request: Request):
    return templates.TemplateResponse(
        request,
        "tester.html",
        {
            "version": __version__,
            "has_api_token": config.has_api_token,
            "concurrency": config.BATCH_CONCURRENCY,
        },
    )


# ======================================================
# Single webhook test
# ======================================================


@router.post(
    "/api/test",
    summary="Test one webhook",
    description="Runs schema fetch, submission and polling for one webhook and returns its outcome",
)
async def test_webhook(request: Request):
    """
    Test a single webhook end to end.

    The outcome is returned with HTTP 200 whether the webhook passed or failed.

    Returns:
        dict: Outcome with `success`, `results`, `logs` and `error`
    """
    if not config.has_api_token:
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": MISSING_TOKEN_MESSAGE,
                "logs": ["Environment variable PICSART_API_TOKEN is missing"],
            },
        )

    body = await _read_json_body(request)
    try:
        payload = SingleTestRequest.model_validate(body or {})
    except ValidationError:
        raise HTTPException(status_code=400, detail="webhookId is required")

    logger.info(f"Single webhook test request for: {payload.webhook_id}")

    client = build_flow_client()
    try:
        descriptor = TaskDescriptor(webhook_id=payload.webhook_id)
        outcome = await WebhookTask.from_config(client, config).run(descriptor)
    finally:
        await client.aclose()

    return outcome.to_payload()


# ======================================================
# Batch test stream
# ======================================================


async def _run_batch_stream(sink: StreamEventSink, webhook_ids: Optional[List[str]]) -> None:
    client = build_flow_client()
    try:
        await run_test_all(sink, webhook_ids, is_cancelled=sink.is_closed, client=client)
    finally:
        await client.aclose()
        sink.finish()


async def _single_event_stream(event) -> AsyncIterator[str]:
    yield format_sse(event)


@router.post(
    "/api/test-all",
    summary="Test all webhooks",
    description=(
        "Runs every listed webhook (or the given webhookIds) with bounded concurrency, "
        "streaming progress as server-sent events"
    ),
    response_class=StreamingResponse,
)
async def test_all_webhooks(request: Request) -> StreamingResponse:
    """
    Start a batch run and stream its events.

    An empty or invalid body tests every webhook of the flow-landings listing.
    Closing the connection stops new webhooks from starting.
    """
    body = await _read_json_body(request)
    try:
        payload = BatchTestRequest.model_validate(body or {})
        webhook_ids = [item.strip() for item in payload.webhook_ids or [] if item.strip()]
    except ValidationError:
        webhook_ids = []

    if not config.has_api_token:
        logger.error(MISSING_TOKEN_MESSAGE)
        return StreamingResponse(
            _single_event_stream(ErrorEvent(message=MISSING_TOKEN_MESSAGE)),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    sink = StreamEventSink()
    batch = asyncio.create_task(_run_batch_stream(sink, webhook_ids or None))
    _running_batches.add(batch)
    batch.add_done_callback(_running_batches.discard)

    async def event_stream() -> AsyncIterator[str]:
        try:
            yield format_sse(ConnectedEvent())
            async for chunk in sink.stream(config.SSE_HEARTBEAT_SECONDS):
                yield chunk
        finally:
            if not batch.done():
                logger.info("Batch stream closed by the client")
            sink.close()

    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=SSE_HEADERS)
