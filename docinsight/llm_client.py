"""Gemini text-generation client.

Sends one prompt, optionally preceded by a binary attachment, and returns
the generated text. Service and transport failures are reported as
RequestFailed, blank answers as EmptyResponse.
"""

from typing import Optional, Protocol

from google import genai
from google.genai import errors, types
from loguru import logger

from docinsight.config import ClientConfig
from docinsight.error_handling import (
    EmptyResponse,
    LLMError,
    RequestFailed,
    retry_with_backoff,
)
from docinsight.models import Attachment


class LanguageModelClient(Protocol):
    """Boundary the orchestrator depends on."""

    async def generate(self, prompt: str, attachment: Optional[Attachment] = None) -> str:
        ...


class GeminiClient:
    """Async Gemini client built from an explicit ClientConfig."""

    def __init__(self, config: ClientConfig, client: Optional[genai.Client] = None):
        """Initialize the client.

        Args:
            config: Client configuration (API key, model, retry policy)
            client: Pre-built genai.Client, mainly for tests
        """
        self.config = config
        self.model_name = config.model_name
        self.retry_config = config.retry_config()
        self.client = client or genai.Client(api_key=config.require_api_key())

        logger.info("Gemini client initialized", model=self.model_name)

    def _build_contents(self, prompt: str, attachment: Optional[Attachment]) -> list:
        parts = []
        if attachment is not None:
            # the SDK base64-encodes inline data on the wire
            parts.append(types.Part.from_bytes(data=attachment.data, mime_type=attachment.mime_type))
        parts.append(types.Part(text=prompt))
        return [types.Content(role="user", parts=parts)]

    @retry_with_backoff(config_attr="retry_config")
    async def generate(self, prompt: str, attachment: Optional[Attachment] = None) -> str:
        """Generate text for a prompt.

        Args:
            prompt: Prompt text
            attachment: Optional document sent as inline data before the prompt

        Returns:
            Generated text

        Raises:
            RequestFailed: If the service or transport reports an error
            EmptyResponse: If the service returns no usable text
        """
        logger.debug(
            "Calling Gemini",
            model=self.model_name,
            prompt_length=len(prompt),
            attachment_bytes=attachment.size_bytes if attachment else 0
        )

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model_name,
                contents=self._build_contents(prompt, attachment)
            )
        except errors.APIError as e:
            message = e.message or f"API request failed with status {e.code}"
            logger.error("Gemini API error", status_code=e.code, error=message)
            raise RequestFailed(message, status_code=e.code) from e
        except LLMError:
            raise
        except Exception as e:
            logger.error("Gemini request failed", error=str(e), error_type=type(e).__name__)
            raise RequestFailed(str(e)) from e

        text = (response.text or "") if response is not None else ""
        if not text.strip():
            raise EmptyResponse("No text generated in the API response")

        return text
