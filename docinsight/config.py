"""Configuration objects for DocInsight.

Values come from the environment (optionally a .env file loaded with
python-dotenv). The objects are built once at startup and passed
explicitly to the orchestrator and the Gemini client.
"""

import os
from typing import List, Optional
from dotenv import load_dotenv
from msgspec import Struct, field

from docinsight.error_handling import ConfigurationError, RetryConfig


class ClientConfig(Struct, kw_only=True):
    """Settings for the Gemini text-generation client."""
    api_key: Optional[str] = None
    model_name: str = "gemini-2.5-flash"
    retry_attempts: int = 3
    retry_initial_delay: float = 1.0
    retry_status_codes: List[int] = field(default_factory=lambda: [429, 500, 503, 504])

    def require_api_key(self) -> str:
        """Return the API key or fail with a readable message."""
        if not self.api_key:
            raise ConfigurationError(
                "GOOGLE_API_KEY is not set. Add it to the environment or a .env file."
            )
        return self.api_key

    def retry_config(self) -> RetryConfig:
        return RetryConfig(
            attempts=self.retry_attempts,
            initial_delay=self.retry_initial_delay,
            http_status_codes=list(self.retry_status_codes)
        )


class IntakeConfig(Struct, kw_only=True):
    """Limits applied to selected files."""
    max_file_size_mb: int = 10
    max_pdf_pages: int = 30


class AppConfig(Struct, kw_only=True):
    """Top-level application configuration."""
    client: ClientConfig = field(default_factory=ClientConfig)
    intake: IntakeConfig = field(default_factory=IntakeConfig)
    log_dir: Optional[str] = "logs"
    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def load_config(env_file: Optional[str] = None) -> AppConfig:
    """Build the application configuration from environment variables.

    Args:
        env_file: Optional path to a .env file (defaults to searching upwards)

    Returns:
        AppConfig instance
    """
    load_dotenv(env_file)

    client = ClientConfig(
        api_key=os.getenv("GOOGLE_API_KEY") or None,
        model_name=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
        retry_attempts=_int_env("GEMINI_RETRY_ATTEMPTS", 3),
    )
    intake = IntakeConfig(
        max_file_size_mb=_int_env("MAX_FILE_SIZE_MB", 10),
        max_pdf_pages=_int_env("MAX_PDF_PAGES", 30),
    )

    log_dir = os.getenv("LOG_DIR", "logs")
    cors = os.getenv("CORS_ORIGINS", "http://localhost:3000")

    return AppConfig(
        client=client,
        intake=intake,
        log_dir=log_dir or None,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        api_host=os.getenv("API_HOST", "0.0.0.0"),
        api_port=_int_env("API_PORT", 8000),
        cors_origins=[origin.strip() for origin in cors.split(",") if origin.strip()],
    )
