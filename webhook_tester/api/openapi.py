# webhook_tester/api/openapi.py
"""
OpenAPI configuration for the Webhook Tester API.
Handles documentation metadata, tags and API schema generation.
"""

from typing import Callable, Dict, List

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

from webhook_tester.__version__ import __version__


def custom_openapi(app: FastAPI) -> Callable[[], Dict]:
    """
    Generate the OpenAPI schema with the tag definitions below.

    Args:
        app: FastAPI application instance

    Returns:
        Callable: Function that generates OpenAPI schema
    """

    def _custom_openapi() -> Dict:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title=app.title,
            version=app.version,
            description=app.description,
            routes=app.routes,
        )
        openapi_schema["tags"] = _get_openapi_tags()

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    return _custom_openapi


def _get_openapi_tags() -> List[Dict]:
    return [
        {"name": "Tester", "description": "Single and batch webhook tests"},
        {"name": "Reports", "description": "Generated HTML reports"},
        {"name": "Health", "description": "Service health"},
    ]


def setup_openapi_config(app: FastAPI) -> None:
    """Set up custom OpenAPI configuration for FastAPI app."""
    app.openapi = custom_openapi(app)  # type: ignore[method-assign]


class OpenAPIConfig:
    """
    Configuration class for OpenAPI documentation settings.
    """

    TITLE = "Webhook Tester API"
    DESCRIPTION = """
## Webhook Tester API

Test harness for magic flow webhooks:

* **Single test** - Run one webhook end to end and inspect its outputs
* **Batch test** - Run every webhook with bounded concurrency, streamed as server-sent events
* **Reports** - Browse the dated HTML reports of previous batches

Visit `/` for the tester page, `/docs` or `/redoc` for interactive API documentation.
"""
    VERSION = __version__

    OPENAPI_URL = "/openapi.json"
    DOCS_URL = "/docs"
    REDOC_URL = "/redoc"

    @classmethod
    def get_fastapi_config(cls) -> Dict:
        """
        Get FastAPI configuration for OpenAPI.

        Returns:
            Dict: Configuration dictionary for FastAPI app
        """
        return {
            "title": cls.TITLE,
            "description": cls.DESCRIPTION,
            "version": cls.VERSION,
            "openapi_url": cls.OPENAPI_URL,
            "docs_url": cls.DOCS_URL,
            "redoc_url": cls.REDOC_URL,
        }
