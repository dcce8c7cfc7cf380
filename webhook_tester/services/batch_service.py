# webhook_tester/services/batch_service.py
"""
Test-all orchestration.
Resolves the webhooks to test, runs them through the bounded concurrency
runner and writes the dated report, reporting everything through an event sink.
"""

from functools import partial
from typing import Callable, List, Optional

from webhook_tester.clients.flow_api import FlowApiClient
from webhook_tester.core.config import Config, config
from webhook_tester.core.errors import FlowApiError
from webhook_tester.core.setup_logging import setup_default_logging
from webhook_tester.models.models import BatchSummary, ErrorEvent, InitEvent
from webhook_tester.services.batch_runner import BatchRunner, ReportWriter
from webhook_tester.services.discovery import resolve_descriptors
from webhook_tester.services.progress import EventSink
from webhook_tester.services.report_service import generate_dated_report
from webhook_tester.services.webhook_task import WebhookTask

logger = setup_default_logging()

MISSING_TOKEN_MESSAGE = (
    "Server configuration error: PICSART_API_TOKEN environment variable is not set"
)


async def run_test_all(
    sink: EventSink,
    webhook_ids: Optional[List[str]] = None,
    is_cancelled: Optional[Callable[[], bool]] = None,
    client: Optional[FlowApiClient] = None,
    cfg: Optional[Config] = None,
    concurrency: Optional[int] = None,
    report_writer: Optional[ReportWriter] = None,
    enrich: bool = False,
) -> Optional[BatchSummary]:
    """
    Test every requested webhook, streaming events to `sink`.

    Batch-level failures (missing token, unreachable listing) are reported as
    a single error event and no task is started.

    Args:
        sink: Event sink receiving init, progress, result, complete or error events
        webhook_ids: Explicit ids to test; None or empty tests every listed webhook
        is_cancelled: Cancellation signal forwarded to the runner
        client: Flow API client, built from the configuration when omitted
        cfg: Configuration, defaults to the global config
        concurrency: Concurrency ceiling, defaults to BATCH_CONCURRENCY
        report_writer: Report callable, defaults to a dated report in ARTIFACTS_DIRECTORY
        enrich: Look up slug/title for explicit ids

    Returns:
        Optional[BatchSummary]: Summary of the run, None after a batch-level failure
    """
    cfg = cfg or config

    if not cfg.has_api_token:
        logger.error(MISSING_TOKEN_MESSAGE)
        sink(ErrorEvent(message=MISSING_TOKEN_MESSAGE))
        return None

    owns_client = client is None
    client = client or FlowApiClient.from_config(cfg)
    try:
        sink(InitEvent(message="Fetching webhooks..."))
        if webhook_ids:
            sink(InitEvent(message=f"Testing {len(webhook_ids)} specific webhooks..."))

        try:
            descriptors = await resolve_descriptors(
                client, webhook_ids, enrich=enrich, page_size=cfg.LISTING_PAGE_SIZE
            )
        except FlowApiError as e:
            logger.error(f"Unable to build the webhook list: {e}")
            sink(ErrorEvent(message=str(e)))
            return None

        runner = BatchRunner(
            WebhookTask.from_config(client, cfg),
            concurrency or cfg.BATCH_CONCURRENCY,
            report_writer=report_writer
            or partial(generate_dated_report, artifacts_dir=cfg.ARTIFACTS_DIRECTORY),
        )
        return await runner.run(descriptors, on_event=sink, is_cancelled=is_cancelled)
    except Exception as e:
        logger.exception("Batch run failed")
        sink(ErrorEvent(message=str(e) or e.__class__.__name__))
        return None
    finally:
        if owns_client:
            await client.aclose()
