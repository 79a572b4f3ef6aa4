"""Startup script for the DocInsight API.

This script starts the FastAPI server with configuration from environment variables.
"""

import os
import uvicorn
from loguru import logger

from docinsight.config import load_config
from docinsight.logging_config import setup_logging


if __name__ == "__main__":
    config = load_config()
    reload = os.getenv("API_RELOAD", "false").lower() == "true"
    setup_logging(log_dir=None, level=config.log_level)

    logger.info(f"Starting DocInsight API on {config.api_host}:{config.api_port}")
    logger.info(f"CORS origins: {', '.join(config.cors_origins)}")
    logger.info(f"Gemini model: {config.client.model_name}")

    uvicorn.run(
        "api.main:create_app",
        factory=True,
        host=config.api_host,
        port=config.api_port,
        reload=reload,
        log_level=config.log_level.lower()
    )
