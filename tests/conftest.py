"""Pytest configuration and fixtures for the Webhook Tester test suite."""

import os
import sys
from typing import Any, Dict, List, Optional

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from webhook_tester.core.config import config
from webhook_tester.models.models import FlowLanding, FlowLandingPage, JobResult, SchemaField


class FakeFlowClient:
    """In-memory stand-in for FlowApiClient recording every call."""

    def __init__(
        self,
        schema: Optional[List[Dict[str, str]]] = None,
        statuses: Optional[List[str]] = None,
        result: Optional[List[Dict[str, Any]]] = None,
        landings: Optional[List[Dict[str, Any]]] = None,
        schema_error: Optional[Exception] = None,
        submit_error: Optional[Exception] = None,
        poll_error: Optional[Exception] = None,
        listing_error: Optional[Exception] = None,
    ):
        self.schema = schema if schema is not None else [{"key": "image", "type": "image"}]
        self.statuses = list(statuses or ["COMPLETED"])
        self.result = (
            result
            if result is not None
            else [{"type": "image", "result": {"url": "https://cdn.example.com/out.png"}}]
        )
        self.landings = landings or []
        self.schema_error = schema_error
        self.submit_error = submit_error
        self.poll_error = poll_error
        self.listing_error = listing_error
        self.submitted: List[Dict[str, Any]] = []
        self.polls = 0
        self.closed = False

    async def fetch_schema(self, webhook_id: str) -> List[SchemaField]:
        if self.schema_error:
            raise self.schema_error
        return [SchemaField.model_validate(item) for item in self.schema]

    async def submit(self, webhook_id: str, params: Dict[str, Any]) -> str:
        if self.submit_error:
            raise self.submit_error
        self.submitted.append({"webhook_id": webhook_id, "params": params})
        return f"job-{webhook_id}"

    async def get_job_result(self, job_id: str) -> JobResult:
        if self.poll_error:
            raise self.poll_error
        status = self.statuses[min(self.polls, len(self.statuses) - 1)]
        self.polls += 1
        result = self.result if status.upper() == "COMPLETED" else []
        return JobResult.model_validate({"id": job_id, "status": status, "result": result})

    async def fetch_all_landings(self, page_size: int = 100) -> List[FlowLanding]:
        if self.listing_error:
            raise self.listing_error
        page = FlowLandingPage.model_validate(
            {
                "data": self.landings,
                "meta": {
                    "pagination": {
                        "page": 1,
                        "pageSize": page_size,
                        "pageCount": 1,
                        "total": len(self.landings),
                    }
                },
            }
        )
        return page.data

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_client_factory():
    """Build FakeFlowClient instances."""
    return FakeFlowClient


@pytest.fixture
def api_token(monkeypatch):
    """Configure a bearer token for the duration of a test."""
    monkeypatch.setattr(config, "PICSART_API_TOKEN", "test-token")
    return "test-token"


@pytest.fixture
def artifacts_dir(tmp_path, monkeypatch):
    """Point ARTIFACTS_DIRECTORY at a temporary directory."""
    directory = tmp_path / "artifacts"
    monkeypatch.setattr(config, "ARTIFACTS_DIRECTORY", str(directory))
    return directory


@pytest.fixture
def client(monkeypatch):
    """Test client with rate limiting disabled for deterministic runs."""

    from fastapi.testclient import TestClient

    from webhook_tester.main import app, limiter

    monkeypatch.setattr(limiter, "enabled", False)

    with TestClient(app) as test_client:
        yield test_client
