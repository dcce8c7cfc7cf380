# webhook_tester/clients/flow_api.py
"""
HTTP client for the magic-flow APIs.
Wraps the CMS endpoints (schemas, flow landings) and the workflows endpoints
(webhook submission, job results) behind a single httpx.AsyncClient.
"""

from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from webhook_tester.core.config import Config, config
from webhook_tester.core.errors import FlowApiError, MissingApiTokenError
from webhook_tester.core.setup_logging import setup_default_logging
from webhook_tester.models.models import FlowLanding, FlowLandingPage, JobResult, SchemaField

logger = setup_default_logging()


class FlowApiClient:
    """
    Client for the schema, submit, result and listing endpoints.

    No retry is performed: every failure surfaces as a FlowApiError tagged
    with the HTTP status when one was received.
    """

    def __init__(
        self,
        cms_base_url: str,
        workflows_base_url: str,
        api_token: str = "",
        timeout: float = 30.0,
        drive_folder_name: str = "Preset Gen",
        drive_package_id: str = "com.picsart.preset-gen",
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.cms_base_url = cms_base_url.rstrip("/")
        self.workflows_base_url = workflows_base_url.rstrip("/")
        self.api_token = api_token
        self.drive_folder_name = drive_folder_name
        self.drive_package_id = drive_package_id
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_config(
        cls, cfg: Optional[Config] = None, http_client: Optional[httpx.AsyncClient] = None
    ) -> "FlowApiClient":
        cfg = cfg or config
        return cls(
            cms_base_url=cfg.CMS_API_BASE_URL,
            workflows_base_url=cfg.WORKFLOWS_BASE_URL,
            api_token=cfg.PICSART_API_TOKEN,
            timeout=cfg.HTTP_TIMEOUT_SECONDS,
            drive_folder_name=cfg.DRIVE_FOLDER_NAME,
            drive_package_id=cfg.DRIVE_PACKAGE_ID,
            http_client=http_client,
        )

    async def __aenter__(self) -> "FlowApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client when this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    def _auth_headers(self) -> Dict[str, str]:
        if not self.api_token:
            raise MissingApiTokenError()
        return {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "platform": "web",
            "x-touchpoint": "magic-flow",
            "app": "com.picsart.internal",
        }

    async def _request_json(
        self,
        method: str,
        url: str,
        action: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        try:
            response = await self._client.request(
                method, url, params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            raise FlowApiError(f"Failed to {action}: {e}", url=url) from e

        if response.status_code < 200 or response.status_code >= 300:
            raise FlowApiError(
                f"Failed to {action}: HTTP {response.status_code} - {response.text}",
                status_code=response.status_code,
                url=url,
            )

        try:
            return response.json()
        except ValueError as e:
            raise FlowApiError(
                f"Failed to {action}: invalid JSON response",
                status_code=response.status_code,
                url=url,
            ) from e

    async def fetch_schema(self, webhook_id: str) -> List[SchemaField]:
        """
        Fetch the input schema of a webhook (unauthenticated).

        Args:
            webhook_id: Webhook identifier

        Returns:
            List[SchemaField]: Declared input fields

        Raises:
            FlowApiError: If the request fails or the payload is not a successful schema
        """
        url = f"{self.cms_base_url}/flows-content/schema/{webhook_id}"
        payload = await self._request_json(
            "GET", url, "fetch schema", headers={"Accept": "application/json"}
        )

        if not isinstance(payload, dict) or not payload.get("success") or not isinstance(
            payload.get("data"), list
        ):
            raise FlowApiError(f"Invalid schema response for webhook {webhook_id}", url=url)

        try:
            return [SchemaField.model_validate(item) for item in payload["data"]]
        except ValidationError as e:
            raise FlowApiError(f"Invalid schema field for webhook {webhook_id}: {e}", url=url)

    async def submit(self, webhook_id: str, params: Dict[str, Any]) -> str:
        """
        Submit a webhook for asynchronous processing.

        Args:
            webhook_id: Webhook identifier
            params: Parameters built from the webhook schema

        Returns:
            str: Job identifier to poll

        Raises:
            MissingApiTokenError: If no bearer token is configured
            FlowApiError: If the request fails or no job id is returned
        """
        url = f"{self.workflows_base_url}/magic-flow-webhook/submit"
        body = {
            "params": {
                "webhookId": webhook_id,
                "params": params,
                "driveOptions": {
                    "folderName": self.drive_folder_name,
                    "packageId": self.drive_package_id,
                },
            }
        }
        payload = await self._request_json(
            "POST", url, "submit webhook", json=body, headers=self._auth_headers()
        )

        if not isinstance(payload, dict):
            raise FlowApiError(f"Submit failed: {payload}", url=url)
        response = payload.get("response")
        job_id = response.get("id") if isinstance(response, dict) else None
        if payload.get("status") != "success" or not job_id:
            raise FlowApiError(f"Submit failed: {payload}", url=url)

        return str(job_id)

    async def get_job_result(self, job_id: str) -> JobResult:
        """
        Fetch the current state of a submitted job.

        Raises:
            MissingApiTokenError: If no bearer token is configured
            FlowApiError: If the request fails or the payload is malformed
        """
        url = f"{self.workflows_base_url}/magic-flow-webhook/{job_id}/result"
        payload = await self._request_json(
            "GET", url, "get job result", headers=self._auth_headers()
        )

        response = payload.get("response") if isinstance(payload, dict) else None
        if not isinstance(response, dict):
            raise FlowApiError(f"Invalid result response for job {job_id}", url=url)

        try:
            return JobResult.model_validate({"id": job_id, **response})
        except ValidationError as e:
            raise FlowApiError(f"Invalid result payload for job {job_id}: {e}", url=url)

    async def list_landings(self, page: int = 1, page_size: int = 100) -> FlowLandingPage:
        """Fetch one page of the flow-landings listing."""
        url = f"{self.cms_base_url}/flow-landings"
        payload = await self._request_json(
            "GET",
            url,
            "fetch flow landings",
            params={"pagination[page]": page, "pagination[pageSize]": page_size},
            headers={"Accept": "application/json"},
        )

        try:
            return FlowLandingPage.model_validate(payload)
        except ValidationError as e:
            raise FlowApiError(f"Invalid flow landings page {page}: {e}", url=url)

    async def fetch_all_landings(self, page_size: int = 100) -> List[FlowLanding]:
        """
        Walk every page of the flow-landings listing.

        Returns:
            List[FlowLanding]: Landings of all pages, in listing order
        """
        landings: List[FlowLanding] = []
        page = 1

        while True:
            result = await self.list_landings(page=page, page_size=page_size)
            landings.extend(result.data)
            logger.debug(
                f"Fetched landings page {page}/{result.pagination.page_count} "
                f"({len(result.data)} items)"
            )
            if page >= result.pagination.page_count:
                break
            page += 1

        logger.info(f"Fetched {len(landings)} flow landings")
        return landings
