# launcher.py
"""
Start the webhook tester with Uvicorn (dev) or Gunicorn (prod).
"""

import logging
import os
import signal
import subprocess

from webhook_tester.core.config import config
from webhook_tester.core.setup_logging import get_uvicorn_log_config, setup_default_logging


def reload_config(signum, frame):
    """
    Signal handler for SIGHUP to reload .env configuration dynamically.
    This resets the config module state and reloads environment variables.
    """
    from webhook_tester.core import config as config_module

    config_module.reload_config_env()

    print("Configuration reloaded after SIGHUP signal.")


def run_dev():
    """
    Run the FastAPI application with Uvicorn in development mode (with reload).
    """
    setup_default_logging(json_format=False, log_level=logging.INFO)

    import uvicorn

    log_config = get_uvicorn_log_config(json_format=False)

    server_host = os.getenv("SERVER_HOST", config.SERVER_HOST)
    server_port = int(os.getenv("SERVER_PORT", config.SERVER_PORT))

    print(f"[DEV] Starting Webhook Tester on {server_host}:{server_port}")
    print(f"Tester page: {config.SERVER_URL}/")
    print(f"API Documentation: {config.SERVER_URL}/docs")

    uvicorn.run(
        "webhook_tester.main:app",
        host=server_host,
        port=server_port,
        reload=True,
        log_config=log_config,
        access_log=True,
        workers=1,
    )


def run_prod():
    """
    Run the FastAPI application with Gunicorn + Uvicorn workers in production mode.
    """
    server_host = os.getenv("SERVER_HOST", config.SERVER_HOST)
    server_port = int(os.getenv("SERVER_PORT", config.SERVER_PORT))
    workers = int(os.getenv("UVICORN_WORKERS", config.UVICORN_WORKERS))

    gunicorn_cmd = [
        "gunicorn",
        "webhook_tester.main:app",
        "-k",
        "uvicorn.workers.UvicornWorker",
        "-b",
        f"{server_host}:{server_port}",
        "--workers",
        str(workers),
        # Batch streams stay open for the whole run
        "--timeout",
        "0",
        "--access-logfile",
        "-",
        "--error-logfile",
        "-",
    ]

    print(f"[PROD] Launching Gunicorn with {workers} workers on {server_host}:{server_port}")
    subprocess.run(gunicorn_cmd, check=True)


def main():
    """
    Main entry point for running the application.
    Uses Uvicorn in dev, Gunicorn in prod.
    """
    signal.signal(signal.SIGHUP, reload_config)

    env = os.getenv("ENVIRONMENT", config.ENVIRONMENT).lower()

    if env == "production":
        run_prod()
    else:
        run_dev()


if __name__ == "__main__":
    main()
