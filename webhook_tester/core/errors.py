# webhook_tester/core/errors.py
"""
Error types raised while testing a webhook.

`FlowApiError` is raised by the HTTP client. `WebhookTestError` subclasses are
raised by the per-webhook workflow, one per failing step, and are turned into
a failed outcome at the task boundary.
"""

from enum import Enum
from typing import Any, Dict, Optional

NO_RESULTS_MESSAGE = "No IMAGE or VIDEO results found"
CANCELLED_MESSAGE = "Client disconnected"


class ErrorKind(str, Enum):
    """Closed set of per-webhook failure categories."""

    SCHEMA_FETCH_FAILED = "schema_fetch_failed"
    SUBMIT_FAILED = "submit_failed"
    POLL_FAILED = "poll_failed"
    POLL_TIMEOUT = "poll_timeout"
    NO_RESULTS = "no_results"
    CANCELLED = "cancelled"


class FlowApiError(Exception):
    """
    Error returned by one of the upstream endpoints.

    Attributes:
        status_code: HTTP status of the response, None for transport or payload errors
        url: Requested URL
    """

    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class MissingApiTokenError(FlowApiError):
    """Raised when an authenticated call is attempted without a bearer token."""

    def __init__(self):
        super().__init__(
            "PICSART_API_TOKEN environment variable is not set. "
            "Please set it before running the tests."
        )


class WebhookTestError(Exception):
    """
    Base error for a failed webhook workflow step.

    The message is the string reported to clients; `context` carries the
    structured details (webhook id, job id, HTTP status...).
    """

    kind: ErrorKind

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context

    def __str__(self) -> str:
        return self.message


class SchemaFetchError(WebhookTestError):
    kind = ErrorKind.SCHEMA_FETCH_FAILED


class SubmitError(WebhookTestError):
    kind = ErrorKind.SUBMIT_FAILED


class PollFailedError(WebhookTestError):
    kind = ErrorKind.POLL_FAILED


class PollTimeoutError(WebhookTestError):
    kind = ErrorKind.POLL_TIMEOUT


class NoResultsError(WebhookTestError):
    kind = ErrorKind.NO_RESULTS

    def __init__(self, **context: Any):
        super().__init__(NO_RESULTS_MESSAGE, **context)


class TaskCancelledError(WebhookTestError):
    kind = ErrorKind.CANCELLED

    def __init__(self, **context: Any):
        super().__init__(CANCELLED_MESSAGE, **context)
