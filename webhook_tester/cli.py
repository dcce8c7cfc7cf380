# webhook_tester/cli.py
"""
Command-line batch run.

Tests the webhooks given with --webhook-ids (or WEBHOOK_IDS), or every
webhook of the flow-landings listing, and writes HTML reports:
a live `webhook-results.html` refreshed after each result and a dated report
with its index at the end.

Usage:
    python -m webhook_tester.cli [--webhook-ids ID1,ID2] [--concurrency N] [--artifacts-dir DIR]
"""

import argparse
import asyncio
import os
from functools import partial
from typing import List, Optional

from webhook_tester.clients.flow_api import FlowApiClient
from webhook_tester.core.config import config
from webhook_tester.core.setup_logging import setup_default_logging
from webhook_tester.models.models import TaskOutcome
from webhook_tester.services.batch_service import run_test_all
from webhook_tester.services.discovery import get_manual_webhook_ids
from webhook_tester.services.progress import LoggingEventSink
from webhook_tester.services.report_service import (
    LIVE_REPORT_FILENAME,
    generate_dated_report,
    generate_html_report,
    log_summary,
)

logger = setup_default_logging()


def _positive_int(value: str) -> int:
    parsed = int(value)
    if parsed < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return parsed


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Test magic flow webhooks and write an HTML report")
    p.add_argument(
        "--webhook-ids",
        default=None,
        help="Comma-separated webhook ids (default: WEBHOOK_IDS, else every listed webhook)",
    )
    p.add_argument(
        "--concurrency",
        type=_positive_int,
        default=None,
        help=f"Maximum webhooks tested at once (default: {config.BATCH_CONCURRENCY})",
    )
    p.add_argument(
        "--artifacts-dir",
        default=None,
        help=f"Report directory (default: {config.ARTIFACTS_DIRECTORY})",
    )
    return p


async def run_cli(
    webhook_ids: Optional[List[str]] = None,
    concurrency: Optional[int] = None,
    artifacts_dir: Optional[str] = None,
    client: Optional[FlowApiClient] = None,
) -> int:
    """
    Run one batch and write its reports.

    Returns:
        int: Process exit code, 1 when nothing could be tested
    """
    artifacts_dir = artifacts_dir or config.ARTIFACTS_DIRECTORY
    live_report_path = os.path.join(artifacts_dir, LIVE_REPORT_FILENAME)
    collected: List[TaskOutcome] = []

    def refresh_live_report(outcome: TaskOutcome) -> None:
        collected.append(outcome)
        try:
            generate_html_report(collected, live_report_path)
        except OSError as e:
            logger.warning(f"Unable to update {live_report_path}: {e}")

    if webhook_ids:
        logger.info(f"MANUAL MODE: testing {len(webhook_ids)} specified webhook id(s)")
    else:
        logger.info("API MODE: fetching all flow landings")

    summary = await run_test_all(
        LoggingEventSink(on_result=refresh_live_report),
        webhook_ids,
        client=client,
        concurrency=concurrency or config.BATCH_CONCURRENCY,
        report_writer=partial(generate_dated_report, artifacts_dir=artifacts_dir),
        enrich=True,
    )

    if summary is None:
        return 1
    if summary.total == 0:
        logger.error("No webhooks to test")
        return 1

    log_summary(summary.results)
    try:
        generate_html_report(summary.results, live_report_path)
    except OSError as e:
        logger.warning(f"Unable to write {live_report_path}: {e}")

    logger.info("=" * 60)
    logger.info(f"FINAL RESULTS: {summary.passed} passed, {summary.failed} failed")
    if summary.report_path:
        logger.info(f"Report: {summary.report_path}")
    logger.info("=" * 60)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    webhook_ids = get_manual_webhook_ids(
        args.webhook_ids if args.webhook_ids is not None else config.WEBHOOK_IDS
    )
    return asyncio.run(
        run_cli(
            webhook_ids=webhook_ids,
            concurrency=args.concurrency,
            artifacts_dir=args.artifacts_dir,
        )
    )


if __name__ == "__main__":
    raise SystemExit(main())
