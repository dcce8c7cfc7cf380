# webhook_tester/models/models.py
"""
Data models for the webhook tester.
Defines Pydantic models for upstream payloads, task descriptors and outcomes,
batch events and request/response schemas.

JSON keys use camelCase (`webhookId`, `durationMs`...) so the payloads match
what the browser page and the upstream APIs exchange.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from webhook_tester.core.errors import ErrorKind


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase keys and without unset optional values."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ======================================================
# Upstream API payloads
# ======================================================


class SchemaField(CamelModel):
    """One input field declared by a webhook schema."""

    key: str = Field(..., description="Parameter name expected by the webhook")
    type: str = Field(..., description="Declared field type: image, video, text, prompt...")


class MediaMetadata(CamelModel):
    """Metadata attached to an image or video result."""

    width: Optional[Union[int, float]] = None
    height: Optional[Union[int, float]] = None
    duration: Optional[Union[int, float]] = None
    mime_type: Optional[str] = None
    ratio: Optional[str] = None


class ResultItem(CamelModel):
    """One item of a completed job result."""

    type: str = Field(..., description="Result type: image, video or text")
    result: Optional[Dict[str, Any]] = Field(
        None, description="Result record - `url` (+ metadata) for media, `value` for text"
    )


class JobResult(CamelModel):
    """Status of a submitted job as returned by the poll endpoint."""

    id: str = Field(..., description="Job identifier")
    status: str = Field(..., description="PENDING, PROCESSING, COMPLETED or FAILED")
    result: List[ResultItem] = Field(default_factory=list, description="Job outputs")

    @field_validator("result", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def normalized_status(self) -> str:
        return self.status.strip().lower()


class FlowInfo(CamelModel):
    """Flow attached to a landing page."""

    flow_id: Optional[str] = None
    schema_fields: List[SchemaField] = Field(default_factory=list, alias="schema")
    preset_credit_count: Optional[int] = None


class FlowLanding(CamelModel):
    """Single item of the flow-landings listing."""

    id: Optional[int] = None
    document_id: Optional[str] = None
    title: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = Field(None, description="Flow type: image or video")
    category: Optional[str] = None
    flow: Optional[FlowInfo] = None


class Pagination(CamelModel):
    page: int
    page_size: int = 0
    page_count: int
    total: int = 0


class ListingMeta(CamelModel):
    pagination: Pagination


class FlowLandingPage(CamelModel):
    """One page of the flow-landings listing: `{data, meta: {pagination}}`."""

    data: List[FlowLanding] = Field(default_factory=list)
    meta: ListingMeta

    @property
    def pagination(self) -> Pagination:
        return self.meta.pagination


# ======================================================
# Tasks and outcomes
# ======================================================


class TaskDescriptor(CamelModel):
    """
    Identifies one webhook to test.

    Attributes:
        webhook_id: Opaque webhook (flow) identifier
        slug: Short display name from the landings listing
        title: Human title from the landings listing
        category: Category tag from the landings listing
        flow_type: Flow type from the landings listing (image or video)
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    webhook_id: str = Field(..., min_length=1, description="Webhook identifier")
    slug: Optional[str] = None
    title: Optional[str] = None
    category: Optional[str] = None
    flow_type: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.slug or self.webhook_id


class Artifact(CamelModel):
    """A produced media reference."""

    type: str = Field(..., description="image or video")
    url: str = Field(..., description="Resource locator of the produced media")
    metadata: Optional[MediaMetadata] = None


class TaskOutcome(CamelModel):
    """
    Terminal result of testing one webhook.

    A passed outcome always carries at least one artifact and no error; a failed
    outcome always carries an error message and no artifacts.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    webhook_id: str
    slug: Optional[str] = None
    title: Optional[str] = None
    category: Optional[str] = None
    flow_type: Optional[str] = None
    success: bool
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    results: List[Artifact] = Field(default_factory=list)
    logs: List[str] = Field(default_factory=list)
    duration_ms: int = 0

    @model_validator(mode="after")
    def _check_consistency(self) -> "TaskOutcome":
        if self.success and (not self.results or self.error):
            raise ValueError("a passed outcome needs results and no error")
        if not self.success and (self.results or not self.error):
            raise ValueError("a failed outcome needs an error and no results")
        return self

    @property
    def display_name(self) -> str:
        return self.slug or self.webhook_id

    @classmethod
    def passed(
        cls,
        descriptor: TaskDescriptor,
        results: List[Artifact],
        logs: List[str],
        duration_ms: int,
    ) -> "TaskOutcome":
        return cls(
            **descriptor.model_dump(),
            success=True,
            results=list(results),
            logs=list(logs),
            duration_ms=duration_ms,
        )

    @classmethod
    def failed(
        cls,
        descriptor: TaskDescriptor,
        error: str,
        logs: List[str],
        duration_ms: int,
        error_kind: Optional[ErrorKind] = None,
    ) -> "TaskOutcome":
        return cls(
            **descriptor.model_dump(),
            success=False,
            error=error or "Unknown error",
            error_kind=error_kind,
            logs=list(logs),
            duration_ms=duration_ms,
        )


class ErrorGroup(CamelModel):
    """Failed outcomes sharing the same normalized error signature."""

    signature: str
    count: int
    outcomes: List[TaskOutcome] = Field(default_factory=list)


class BatchSummary(CamelModel):
    """Aggregate of one batch run, in completion order."""

    total: int
    passed: int
    failed: int
    results: List[TaskOutcome] = Field(default_factory=list)
    error_groups: List[ErrorGroup] = Field(default_factory=list)
    report_path: Optional[str] = None
    cancelled: bool = False


# ======================================================
# Batch events
# ======================================================


class ConnectedEvent(CamelModel):
    type: Literal["connected"] = "connected"
    message: str = "Stream established"


class InitEvent(CamelModel):
    type: Literal["init"] = "init"
    total: Optional[int] = None
    message: Optional[str] = None


class ProgressEvent(CamelModel):
    """Emitted once per task when it starts."""

    type: Literal["progress"] = "progress"
    current: int
    total: int
    webhook: str


class ResultEvent(CamelModel):
    """Emitted once per task when it completes."""

    type: Literal["result"] = "result"
    result: TaskOutcome


class CompleteEvent(CamelModel):
    type: Literal["complete"] = "complete"
    passed: int
    failed: int
    total: int
    report_path: Optional[str] = None


class ErrorEvent(CamelModel):
    """Unrecoverable batch-level failure."""

    type: Literal["error"] = "error"
    message: str


class HeartbeatEvent(CamelModel):
    type: Literal["heartbeat"] = "heartbeat"


BatchEvent = Union[
    ConnectedEvent,
    InitEvent,
    ProgressEvent,
    ResultEvent,
    CompleteEvent,
    ErrorEvent,
    HeartbeatEvent,
]


# ======================================================
# HTTP request / response schemas
# ======================================================


class SingleTestRequest(CamelModel):
    """Body of POST /api/test."""

    webhook_id: str = Field(..., min_length=1, description="Webhook identifier to test")


class BatchTestRequest(CamelModel):
    """Body of POST /api/test-all. Without ids, every listed webhook is tested."""

    webhook_ids: Optional[List[str]] = Field(
        None, description="Specific webhook identifiers to test (manual mode)"
    )


class ReportFile(CamelModel):
    """A dated HTML report available in the artifacts directory."""

    filename: str
    created: datetime
    size: int
