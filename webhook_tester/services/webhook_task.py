# webhook_tester/services/webhook_task.py
"""
Per-webhook test workflow.
Fetches the webhook schema, builds placeholder parameters, submits the webhook,
polls the job until it completes and keeps the produced image/video results.
"""

import asyncio
import re
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import ValidationError

from webhook_tester.clients.flow_api import FlowApiClient
from webhook_tester.core.config import Config, config
from webhook_tester.core.errors import (
    FlowApiError,
    NoResultsError,
    PollFailedError,
    PollTimeoutError,
    SchemaFetchError,
    SubmitError,
    TaskCancelledError,
    WebhookTestError,
)
from webhook_tester.core.setup_logging import setup_default_logging
from webhook_tester.models.models import (
    Artifact,
    JobResult,
    MediaMetadata,
    TaskDescriptor,
    TaskOutcome,
)
from webhook_tester.services.params import PlaceholderAssets, build_params_from_schema

logger = setup_default_logging()

MEDIA_TYPES = ("image", "video")
_VALID_URL_RE = re.compile(r"^https?://.+")

CancelCheck = Callable[[], bool]


def is_valid_url(url: Any) -> bool:
    """Return True for a non-empty http(s) URL."""
    return isinstance(url, str) and bool(_VALID_URL_RE.match(url))


def _never_cancelled() -> bool:
    return False


class WebhookTask:
    """
    Task unit testing one webhook end to end.

    Every step failure is converted into a failed TaskOutcome: run() never raises.
    The client and the polling policy are injected so the unit can be driven by fakes.
    """

    def __init__(
        self,
        client: FlowApiClient,
        poll_interval: float = 2.0,
        poll_max_attempts: int = 150,
        assets: Optional[PlaceholderAssets] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if poll_max_attempts < 1:
            raise ValueError("poll_max_attempts must be at least 1")
        self.client = client
        self.poll_interval = poll_interval
        self.poll_max_attempts = poll_max_attempts
        self.assets = assets or PlaceholderAssets.from_config()
        self._sleep = sleep

    @classmethod
    def from_config(cls, client: FlowApiClient, cfg: Optional[Config] = None) -> "WebhookTask":
        cfg = cfg or config
        return cls(
            client=client,
            poll_interval=cfg.POLL_INTERVAL_SECONDS,
            poll_max_attempts=cfg.POLL_MAX_ATTEMPTS,
            assets=PlaceholderAssets.from_config(cfg),
        )

    @property
    def poll_timeout_seconds(self) -> float:
        return self.poll_interval * self.poll_max_attempts

    async def __call__(
        self, descriptor: TaskDescriptor, is_cancelled: Optional[CancelCheck] = None
    ) -> TaskOutcome:
        return await self.run(descriptor, is_cancelled)

    async def run(
        self, descriptor: TaskDescriptor, is_cancelled: Optional[CancelCheck] = None
    ) -> TaskOutcome:
        """
        Run the full workflow for one webhook.

        Args:
            descriptor: Webhook to test
            is_cancelled: Checked before each step that starts new upstream work

        Returns:
            TaskOutcome: Passed outcome with artifacts, or failed outcome with the error
        """
        is_cancelled = is_cancelled or _never_cancelled
        trail: List[str] = []
        started = time.monotonic()

        def log(message: str) -> None:
            trail.append(message)
            logger.debug(
                f"[{descriptor.webhook_id}] {message}",
                extra={"webhook_id": descriptor.webhook_id, "component": "webhook_task"},
            )

        def elapsed_ms() -> int:
            return int((time.monotonic() - started) * 1000)

        try:
            log(f"Testing webhook: {descriptor.display_name} ({descriptor.webhook_id})")
            artifacts = await self._execute(descriptor, is_cancelled, log)
        except WebhookTestError as e:
            log(f"Error: {e.message}")
            logger.warning(
                f"Webhook {descriptor.webhook_id} failed ({e.kind.value}): {e.message}",
                extra={"webhook_id": descriptor.webhook_id, "operation": e.kind.value},
            )
            return TaskOutcome.failed(descriptor, e.message, trail, elapsed_ms(), e.kind)
        except Exception as e:
            message = str(e) or e.__class__.__name__
            log(f"Error: {message}")
            logger.exception(f"Unexpected error while testing webhook {descriptor.webhook_id}")
            return TaskOutcome.failed(descriptor, message, trail, elapsed_ms())

        log(f"Webhook passed with {len(artifacts)} result(s)")
        return TaskOutcome.passed(descriptor, artifacts, trail, elapsed_ms())

    async def _execute(
        self,
        descriptor: TaskDescriptor,
        is_cancelled: CancelCheck,
        log: Callable[[str], None],
    ) -> List[Artifact]:
        webhook_id = descriptor.webhook_id

        if is_cancelled():
            raise TaskCancelledError(webhook_id=webhook_id)

        log("Fetching schema...")
        try:
            fields = await self.client.fetch_schema(webhook_id)
        except FlowApiError as e:
            raise SchemaFetchError(str(e), webhook_id=webhook_id, status_code=e.status_code)
        log(f"Schema fetched: {len(fields)} field(s)")

        params, warnings = build_params_from_schema(fields, self.assets)
        for warning in warnings:
            log(f"Warning: {warning}")
        log(f"Params built: {', '.join(params) or 'none'}")

        if is_cancelled():
            raise TaskCancelledError(webhook_id=webhook_id)

        log("Submitting webhook...")
        try:
            job_id = await self.client.submit(webhook_id, params)
        except FlowApiError as e:
            raise SubmitError(str(e), webhook_id=webhook_id, status_code=e.status_code)
        log(f"Job submitted: {job_id}")

        job = await self._poll(webhook_id, job_id, log)
        log(f"Job completed with {len(job.result)} result item(s)")

        artifacts = self._collect_artifacts(job, log)
        if not artifacts:
            raise NoResultsError(webhook_id=webhook_id, job_id=job_id)
        log(f"Found {len(artifacts)} media result(s)")
        return artifacts

    async def _poll(
        self, webhook_id: str, job_id: str, log: Callable[[str], None]
    ) -> JobResult:
        """
        Poll the job at a fixed interval until it completes, fails or times out.

        No sleep happens after the last attempt.
        """
        log("Polling for results...")
        for attempt in range(1, self.poll_max_attempts + 1):
            try:
                job = await self.client.get_job_result(job_id)
            except FlowApiError as e:
                raise PollFailedError(
                    str(e), webhook_id=webhook_id, job_id=job_id, status_code=e.status_code
                )

            status = job.normalized_status
            log(f"Poll attempt {attempt}/{self.poll_max_attempts}: {job.status}")

            if status == "completed":
                return job
            if status == "failed":
                raise PollFailedError(f"Job {job_id} failed", webhook_id=webhook_id, job_id=job_id)

            if attempt < self.poll_max_attempts:
                await self._sleep(self.poll_interval)

        raise PollTimeoutError(
            f"Job {job_id} did not complete within {self.poll_timeout_seconds:g} seconds",
            webhook_id=webhook_id,
            job_id=job_id,
        )

    def _collect_artifacts(self, job: JobResult, log: Callable[[str], None]) -> List[Artifact]:
        artifacts: List[Artifact] = []

        for item in job.result:
            item_type = item.type.strip().lower()
            record: Dict[str, Any] = item.result or {}
            url = record.get("url")
            if item_type not in MEDIA_TYPES or not url:
                continue
            if not is_valid_url(url):
                log(f"Warning: skipping {item_type} result with invalid URL: {url}")
                continue

            metadata = None
            if isinstance(record.get("metadata"), dict):
                try:
                    metadata = MediaMetadata.model_validate(record["metadata"])
                except ValidationError:
                    log(f"Warning: ignoring unreadable metadata for {url}")

            artifacts.append(Artifact(type=item_type, url=url, metadata=metadata))

        return artifacts
