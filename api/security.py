"""Startup checks and response headers for the DocInsight API."""

import re
from typing import Any, Dict

from docinsight.config import AppConfig


PLACEHOLDER_KEYS = frozenset({
    "your_gemini_api_key_here",
    "your_api_key_here",
    "placeholder",
    "changeme",
    "test_key",
})

GOOGLE_KEY_PATTERN = re.compile(r"^AIza[0-9A-Za-z_-]{35}$")
GENERIC_KEY_PATTERN = re.compile(r"^[0-9A-Za-z_-]{20,}$")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


def validate_api_key_format(api_key: str) -> bool:
    """Whether the key looks like a real Gemini key rather than a placeholder."""
    if not api_key or api_key.lower() in PLACEHOLDER_KEYS:
        return False
    return bool(GOOGLE_KEY_PATTERN.match(api_key) or GENERIC_KEY_PATTERN.match(api_key))


def validate_configuration(config: AppConfig) -> Dict[str, Any]:
    """Find deployment mistakes in the loaded configuration.

    Returns:
        Dictionary with ``valid``, ``errors`` (the service cannot summarize)
        and ``warnings`` (it can, but should not run like this in production)
    """
    errors = []
    warnings = []

    key = config.client.api_key
    if not key:
        errors.append("GOOGLE_API_KEY is not set")
    elif not validate_api_key_format(key):
        errors.append("GOOGLE_API_KEY looks like a placeholder or is malformed")

    if not config.cors_origins:
        warnings.append("CORS_ORIGINS is empty; browsers cannot call the API")
    elif "*" in config.cors_origins:
        warnings.append("CORS_ORIGINS allows any origin via wildcard (*)")

    if config.log_level == "DEBUG":
        warnings.append("LOG_LEVEL is DEBUG; prompts and answers may end up in the logs")

    return {"valid": not errors, "errors": errors, "warnings": warnings}


def get_security_headers() -> Dict[str, str]:
    return dict(SECURITY_HEADERS)
