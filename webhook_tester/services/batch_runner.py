# webhook_tester/services/batch_runner.py
"""
Bounded concurrency runner for webhook batches.

Tasks are admitted in list order and a slot is refilled as soon as any
running task finishes, so at most `concurrency` tasks run at once and no
slot waits on a slower batch-mate.
"""

import asyncio
import time
from typing import Awaitable, Callable, Iterable, List, Optional, Set

from webhook_tester.core.errors import CANCELLED_MESSAGE, ErrorKind
from webhook_tester.core.setup_logging import setup_default_logging
from webhook_tester.models.models import (
    BatchEvent,
    BatchSummary,
    CompleteEvent,
    InitEvent,
    ProgressEvent,
    ResultEvent,
    TaskDescriptor,
    TaskOutcome,
)
from webhook_tester.services.aggregator import ResultAggregator
from webhook_tester.services.progress import EventSink

logger = setup_default_logging()

CancelCheck = Callable[[], bool]
TaskUnit = Callable[[TaskDescriptor, CancelCheck], Awaitable[TaskOutcome]]
ReportWriter = Callable[[List[TaskOutcome]], Optional[str]]


def _never_cancelled() -> bool:
    return False


def _discard_event(event: BatchEvent) -> None:
    return None


class BatchRunner:
    """
    Runs a list of task descriptors through a task unit with a concurrency ceiling.

    Args:
        task_unit: Async callable turning a descriptor into an outcome
        concurrency: Maximum number of tasks running at the same time (>= 1)
        report_writer: Optional callable rendering the final outcomes, returning the report path
    """

    def __init__(
        self,
        task_unit: TaskUnit,
        concurrency: int,
        report_writer: Optional[ReportWriter] = None,
    ):
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self.task_unit = task_unit
        self.concurrency = concurrency
        self.report_writer = report_writer

    async def run(
        self,
        descriptors: Iterable[TaskDescriptor],
        on_event: Optional[EventSink] = None,
        is_cancelled: Optional[CancelCheck] = None,
    ) -> BatchSummary:
        """
        Execute every descriptor and return the aggregated summary.

        Events: `init` first, then one `progress` per task start and one
        `result` per task completion, then `complete`. Nothing is emitted once
        `is_cancelled()` turns true, and tasks not yet started are recorded as
        disconnected failures instead of being run.

        Args:
            descriptors: Tasks in admission order
            on_event: Event sink
            is_cancelled: Cancellation signal, checked before every task start

        Returns:
            BatchSummary: Outcomes in completion order with pass/fail counters
        """
        tasks = list(descriptors)
        total = len(tasks)
        sink = on_event or _discard_event
        is_cancelled = is_cancelled or _never_cancelled
        aggregator = ResultAggregator(total)

        def emit(event: BatchEvent) -> None:
            if is_cancelled():
                return
            try:
                sink(event)
            except Exception as e:
                logger.error(f"Event sink raised on {event.type} event: {e}")

        emit(InitEvent(total=total))
        logger.info(f"Starting batch of {total} task(s) with concurrency {self.concurrency}")

        cursor = 0
        in_flight: Set[asyncio.Task] = set()

        def start_next() -> None:
            nonlocal cursor
            index = cursor
            cursor += 1
            in_flight.add(
                asyncio.create_task(
                    self._run_one(tasks[index], index, total, aggregator, emit, is_cancelled)
                )
            )

        try:
            while cursor < min(self.concurrency, total):
                start_next()

            while cursor < total or in_flight:
                done, _ = await asyncio.wait(in_flight, return_when=asyncio.FIRST_COMPLETED)
                in_flight.difference_update(done)
                while cursor < total and len(in_flight) < self.concurrency:
                    start_next()
        except asyncio.CancelledError:
            for task in in_flight:
                task.cancel()
            raise

        report_path = await self._write_report(aggregator.outcomes)
        cancelled = is_cancelled()

        emit(
            CompleteEvent(
                passed=aggregator.passed,
                failed=aggregator.failed,
                total=total,
                report_path=report_path,
            )
        )
        logger.info(
            f"Batch finished: {aggregator.passed} passed, {aggregator.failed} failed, "
            f"{total} total{' (cancelled)' if cancelled else ''}"
        )

        return aggregator.summary(report_path=report_path, cancelled=cancelled)

    async def _run_one(
        self,
        descriptor: TaskDescriptor,
        index: int,
        total: int,
        aggregator: ResultAggregator,
        emit: Callable[[BatchEvent], None],
        is_cancelled: CancelCheck,
    ) -> TaskOutcome:
        if is_cancelled():
            outcome = TaskOutcome.failed(
                descriptor,
                CANCELLED_MESSAGE,
                [f"Skipped {descriptor.display_name}: {CANCELLED_MESSAGE}"],
                0,
                ErrorKind.CANCELLED,
            )
        else:
            emit(ProgressEvent(current=index + 1, total=total, webhook=descriptor.display_name))
            started = time.monotonic()
            try:
                outcome = await self.task_unit(descriptor, is_cancelled)
            except Exception as e:
                logger.exception(f"Task unit raised for {descriptor.webhook_id}")
                outcome = TaskOutcome.failed(
                    descriptor,
                    str(e) or e.__class__.__name__,
                    [f"Error: {e}"],
                    int((time.monotonic() - started) * 1000),
                )

        aggregator.add(outcome)
        emit(ResultEvent(result=outcome))
        return outcome

    async def _write_report(self, outcomes: List[TaskOutcome]) -> Optional[str]:
        if self.report_writer is None:
            return None
        try:
            return await asyncio.to_thread(self.report_writer, outcomes)
        except Exception as e:
            logger.warning(f"Report generation skipped: {e}")
            return None


async def run_batch(
    descriptors: Iterable[TaskDescriptor],
    concurrency: int,
    on_event: Optional[EventSink] = None,
    is_cancelled: Optional[CancelCheck] = None,
    *,
    task_unit: TaskUnit,
    report_writer: Optional[ReportWriter] = None,
) -> BatchSummary:
    """Run a batch with a one-off BatchRunner."""
    runner = BatchRunner(task_unit, concurrency, report_writer=report_writer)
    return await runner.run(descriptors, on_event=on_event, is_cancelled=is_cancelled)
