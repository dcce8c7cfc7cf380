# webhook_tester/main.py
"""
Webhook Tester API
------------------
This module defines a FastAPI application testing magic flow webhooks.
It handles:
- Single webhook tests (schema, submission, polling, output check)
- Batch runs with bounded concurrency streamed as server-sent events
- Dated HTML reports of previous batches
"""

import signal
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from webhook_tester.api.openapi import OpenAPIConfig, setup_openapi_config
from webhook_tester.api.routes import health, reports, tester
from webhook_tester.core import config as config_module
from webhook_tester.core.config import config
from webhook_tester.core.setup_logging import setup_default_logging

# Configure logging
logger = setup_default_logging()


def _register_sighup_reload():
    """Register SIGHUP handler in the worker process to reload config."""
    try:
        signal.signal(signal.SIGHUP, lambda signum, frame: config_module.reload_config_env())
    except Exception as exc:  # signal may not be available on some platforms
        logger.warning(f"Failed to register SIGHUP reload handler: {exc}")


_register_sighup_reload()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Args:
        app: FastAPI application instance
    """
    logger.info("Starting Webhook Tester application")
    if not config.has_api_token:
        logger.warning("PICSART_API_TOKEN is not set - test endpoints will report an error")

    yield

    logger.info("Shutting down Webhook Tester application")


app = FastAPI(lifespan=lifespan, **OpenAPIConfig.get_fastapi_config())

# Rate limiting configuration
limiter = Limiter(key_func=get_remote_address, default_limits=[config.RATE_LIMIT_DEFAULT])
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

# CORS middleware configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=config.CORS_ALLOW_CREDENTIALS,
    allow_methods=config.CORS_ALLOW_METHODS,
    allow_headers=config.CORS_ALLOW_HEADERS,
)

app.include_router(tester.router)
app.include_router(reports.router)
app.include_router(health.router)

# Setup custom OpenAPI configuration
setup_openapi_config(app)
