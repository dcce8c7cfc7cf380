# webhook_tester/core/config.py
"""
Configuration module for the webhook tester.
Handles environment variables, upstream API settings, polling policy and server settings.
"""

import os
from typing import List, Optional

# Module-level global state - these persist across imports
_CONFIG_ENV_LOADED: bool = False
_CONFIG_INSTANCE: Optional["Config"] = None

# Keys managed by this config; cleared on reload to reflect deletions in .env
_CONFIG_ENV_KEYS = [
    "SERVER_PROTOCOL",
    "SERVER_HOST",
    "SERVER_PORT",
    "ENVIRONMENT",
    "UVICORN_WORKERS",
    "LOG_DIRECTORY",
    "LOG_LEVEL",
    "PICSART_API_TOKEN",
    "CMS_API_BASE_URL",
    "WORKFLOWS_BASE_URL",
    "HTTP_TIMEOUT_SECONDS",
    "LISTING_PAGE_SIZE",
    "POLL_INTERVAL_SECONDS",
    "POLL_MAX_ATTEMPTS",
    "BATCH_CONCURRENCY",
    "SSE_HEARTBEAT_SECONDS",
    "ARTIFACTS_DIRECTORY",
    "WEBHOOK_IDS",
    "PLACEHOLDER_IMAGE_URL",
    "PLACEHOLDER_IMAGE2_URL",
    "PLACEHOLDER_VIDEO_URL",
    "PLACEHOLDER_TEXT",
    "DRIVE_FOLDER_NAME",
    "DRIVE_PACKAGE_ID",
    "CORS_ALLOW_ORIGINS",
    "CORS_ALLOW_CREDENTIALS",
    "CORS_ALLOW_METHODS",
    "CORS_ALLOW_HEADERS",
    "RATE_LIMIT_DEFAULT",
]

DEFAULT_PLACEHOLDER_IMAGE_URL = (
    "https://cdn-pipeline-output.picsart.com/magic-flow/"
    "555a2382-2a0c-439d-8a6d-4bc21bd7757e.png?type=webp&to=min&r=404"
)
DEFAULT_PLACEHOLDER_IMAGE2_URL = (
    "https://cdnmf.picsart.com/cloud-storage/dd402124-c130-4014-ac7b-9f0d4c952ff4.webp"
)
DEFAULT_PLACEHOLDER_VIDEO_URL = (
    "https://cdn-pipeline-output.picsart.com/magic-flow/cad88d5f-d8d2-4ec0-be17-b8e69694f237.mp4"
)
DEFAULT_PLACEHOLDER_TEXT = "High quality, professional"


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    """Parse a boolean from a string with a fallback default."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "f", "no", "n", "off"}:
        return False
    return default


def _parse_int(
    value: Optional[str],
    default: int,
    *,
    min_value: Optional[int] = None,
    max_value: Optional[int] = None,
) -> int:
    """Parse an integer from a string with optional bounds and fallback default."""
    if value is None:
        return default
    try:
        parsed = int(value.strip())
    except (TypeError, ValueError):
        return default
    if min_value is not None:
        parsed = max(min_value, parsed)
    if max_value is not None:
        parsed = min(max_value, parsed)
    return parsed


def _parse_float(
    value: Optional[str],
    default: float,
    *,
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
) -> float:
    """Parse a float from a string with optional bounds and fallback default."""
    if value is None:
        return default
    try:
        parsed = float(value.strip())
    except (TypeError, ValueError):
        return default
    if min_value is not None:
        parsed = max(min_value, parsed)
    if max_value is not None:
        parsed = min(max_value, parsed)
    return parsed


def _parse_list(value: Optional[str], default: List[str]) -> List[str]:
    """Parse a comma-separated list, falling back to default when empty."""
    return [item.strip() for item in (value or "").split(",") if item.strip()] or default


def reload_config_env():
    """Reload configuration from .env, updating the shared config object in place."""
    global _CONFIG_ENV_LOADED, _CONFIG_INSTANCE, config

    old_config = config if "config" in globals() else None

    _CONFIG_ENV_LOADED = False
    _CONFIG_INSTANCE = None
    _clear_config_env_vars()
    _load_environment_variables()
    new_config = Config()
    _CONFIG_INSTANCE = new_config

    if old_config is not None and old_config is not new_config:
        old_config.__dict__.clear()
        old_config.__dict__.update(new_config.__dict__)
        config = old_config
    else:
        config = new_config

    return config


def get_config():
    """
    Get or create the configuration instance.
    Ensures .env file is loaded only once.

    Returns:
        Config: Configuration instance
    """
    global _CONFIG_ENV_LOADED, _CONFIG_INSTANCE

    if _CONFIG_INSTANCE is None:
        if not _CONFIG_ENV_LOADED:
            _load_environment_variables()
            _CONFIG_ENV_LOADED = True

        _CONFIG_INSTANCE = Config()

    return _CONFIG_INSTANCE


def _load_environment_variables() -> None:
    """
    Load environment variables from .env file if it exists.
    This function is called only once.
    """
    env_override = os.getenv("CONFIG_ENV_PATH") or os.getenv("ENV_FILE")

    if env_override:
        env_path = env_override
        print(f"Loading environment variables from override path: {env_path}")
    else:
        current_dir = os.path.dirname(os.path.abspath(__file__))
        package_dir = os.path.dirname(current_dir)
        project_dir = os.path.dirname(package_dir)
        env_path = os.path.join(project_dir, ".env")
        print(f"Loading environment variables from default path: {env_path}")

    if os.path.exists(env_path):
        from dotenv import load_dotenv

        # override=True to refresh already-loaded vars when reloading config
        load_dotenv(env_path, override=True)
        print(f"Loaded environment variables from: {env_path}")
    else:
        print(f"Warning: no .env file found in: {env_path}, default configuration used")


def _clear_config_env_vars() -> None:
    """Remove managed config keys from os.environ to allow deletions in .env to take effect."""
    for key in list(os.environ.keys()):
        if key in _CONFIG_ENV_KEYS:
            os.environ.pop(key, None)


class Config:
    """
    Configuration class that reads from environment variables.
    Assumes .env file has already been loaded.
    """

    def __init__(self):
        """Initialize configuration values."""
        # Server configuration
        self.SERVER_PROTOCOL: str = os.getenv("SERVER_PROTOCOL", "http")
        self.SERVER_HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
        self.SERVER_PORT: int = _parse_int(os.getenv("SERVER_PORT"), 3000, min_value=1)
        self.SERVER_URL = f"{self.SERVER_PROTOCOL}://{self.SERVER_HOST}:{self.SERVER_PORT}"

        # Production settings (development/production)
        self.ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
        # Number of Uvicorn workers (for Gunicorn, production mode)
        self.UVICORN_WORKERS: int = _parse_int(os.getenv("UVICORN_WORKERS"), 1, min_value=1)

        # Directory to store log files
        self.LOG_DIRECTORY: str = os.getenv("LOG_DIRECTORY", "./logs")
        if not self.LOG_DIRECTORY.endswith("/"):
            self.LOG_DIRECTORY += "/"

        # Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

        # Upstream API: bearer token used by the submit and poll endpoints
        self.PICSART_API_TOKEN: str = os.getenv("PICSART_API_TOKEN", "").strip()
        self.CMS_API_BASE_URL: str = os.getenv(
            "CMS_API_BASE_URL", "https://api-cms.gen.ai/api"
        ).rstrip("/")
        self.WORKFLOWS_BASE_URL: str = os.getenv(
            "WORKFLOWS_BASE_URL", "https://api.picsart.com/workflows"
        ).rstrip("/")
        self.HTTP_TIMEOUT_SECONDS: float = _parse_float(
            os.getenv("HTTP_TIMEOUT_SECONDS"), 30.0, min_value=1.0
        )
        # Page size used when walking the flow-landings listing
        self.LISTING_PAGE_SIZE: int = _parse_int(
            os.getenv("LISTING_PAGE_SIZE"), 100, min_value=1, max_value=100
        )

        # Job polling policy: fixed interval, no backoff (150 x 2s = 5 minutes)
        self.POLL_INTERVAL_SECONDS: float = _parse_float(
            os.getenv("POLL_INTERVAL_SECONDS"), 2.0, min_value=0.0
        )
        self.POLL_MAX_ATTEMPTS: int = _parse_int(
            os.getenv("POLL_MAX_ATTEMPTS"), 150, min_value=1
        )

        # Maximum number of webhooks tested simultaneously
        self.BATCH_CONCURRENCY: int = _parse_int(
            os.getenv("BATCH_CONCURRENCY"), 50, min_value=1
        )
        # Seconds of stream silence before a heartbeat event is sent
        self.SSE_HEARTBEAT_SECONDS: float = _parse_float(
            os.getenv("SSE_HEARTBEAT_SECONDS"), 15.0, min_value=0.1
        )

        # Directory where HTML reports are written
        self.ARTIFACTS_DIRECTORY: str = os.getenv("ARTIFACTS_DIRECTORY", "./artifacts")

        # Manual mode: comma-separated webhook ids (CLI); empty means API mode
        self.WEBHOOK_IDS: str = os.getenv("WEBHOOK_IDS", "")

        # Placeholder inputs used to fill the webhook schemas
        self.PLACEHOLDER_IMAGE_URL: str = os.getenv(
            "PLACEHOLDER_IMAGE_URL", DEFAULT_PLACEHOLDER_IMAGE_URL
        )
        self.PLACEHOLDER_IMAGE2_URL: str = os.getenv(
            "PLACEHOLDER_IMAGE2_URL", DEFAULT_PLACEHOLDER_IMAGE2_URL
        )
        self.PLACEHOLDER_VIDEO_URL: str = os.getenv(
            "PLACEHOLDER_VIDEO_URL", DEFAULT_PLACEHOLDER_VIDEO_URL
        )
        self.PLACEHOLDER_TEXT: str = os.getenv("PLACEHOLDER_TEXT", DEFAULT_PLACEHOLDER_TEXT)

        # Drive options sent with every submission
        self.DRIVE_FOLDER_NAME: str = os.getenv("DRIVE_FOLDER_NAME", "Preset Gen")
        self.DRIVE_PACKAGE_ID: str = os.getenv("DRIVE_PACKAGE_ID", "com.picsart.preset-gen")

        # CORS configuration
        # Comma-separated list of allowed origins; use "*" only when allow_credentials is False.
        self.CORS_ALLOW_ORIGINS = _parse_list(os.getenv("CORS_ALLOW_ORIGINS", "*"), ["*"])
        self.CORS_ALLOW_CREDENTIALS: bool = _parse_bool(
            os.getenv("CORS_ALLOW_CREDENTIALS"), default=False
        )
        self.CORS_ALLOW_METHODS = _parse_list(os.getenv("CORS_ALLOW_METHODS", "*"), ["*"])
        self.CORS_ALLOW_HEADERS = _parse_list(os.getenv("CORS_ALLOW_HEADERS", "*"), ["*"])

        # Default slowapi limit applied to every endpoint
        self.RATE_LIMIT_DEFAULT: str = os.getenv("RATE_LIMIT_DEFAULT", "120/minute")

    @property
    def has_api_token(self) -> bool:
        return bool(self.PICSART_API_TOKEN)

    def validate_configuration(self) -> None:
        """
        Validate critical configuration settings.

        Raises:
            ValueError: If essential configuration is missing or invalid
        """
        if not self.has_api_token:
            print("WARNING: PICSART_API_TOKEN is not set - webhook submissions will fail")

        # CORS sanity: disallow wildcard origins with credentials.
        if self.CORS_ALLOW_CREDENTIALS and ("*" in self.CORS_ALLOW_ORIGINS):
            raise ValueError(
                "Invalid CORS configuration: CORS_ALLOW_CREDENTIALS=true is not compatible with CORS_ALLOW_ORIGINS=*"
            )

        if not self.CMS_API_BASE_URL or not self.WORKFLOWS_BASE_URL:
            raise ValueError("CMS_API_BASE_URL and WORKFLOWS_BASE_URL must not be empty")


# Create global config instance using the factory function
config: "Config" = get_config()

# Auto-validate configuration on module load
config.validate_configuration()
