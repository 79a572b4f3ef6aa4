"""
Tests for the Gemini client wrapper.

The google-genai client is replaced by a mock; no network calls are made.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from google.genai import errors

from docinsight.config import ClientConfig
from docinsight.error_handling import ConfigurationError, EmptyResponse, RequestFailed
from docinsight.llm_client import GeminiClient
from docinsight.models import Attachment


def api_error(code, message):
    return errors.APIError(code, {"error": {"code": code, "message": message, "status": "ERROR"}})


def make_client(*side_effect, attempts=3):
    genai_client = MagicMock()
    genai_client.aio.models.generate_content = AsyncMock(side_effect=list(side_effect))
    config = ClientConfig(
        api_key="test-key-for-unit-tests",
        model_name="gemini-test",
        retry_attempts=attempts,
        retry_initial_delay=0.0,
    )
    return GeminiClient(config, client=genai_client), genai_client.aio.models.generate_content


def response(text):
    return MagicMock(text=text)


class TestGenerate:

    def test_returns_text(self):
        client, generate = make_client(response("Plants use [COMPLEX:photosynthesis]."))

        text = asyncio.run(client.generate("Summarize this"))

        assert text == "Plants use [COMPLEX:photosynthesis]."
        assert generate.await_args.kwargs["model"] == "gemini-test"
        contents = generate.await_args.kwargs["contents"]
        assert contents[0].parts[0].text == "Summarize this"

    def test_attachment_sent_before_prompt(self):
        client, generate = make_client(response("Summary."))
        attachment = Attachment(filename="paper.pdf", mime_type="application/pdf", data=b"%PDF-1.4")

        asyncio.run(client.generate("Summarize the document", attachment))

        parts = generate.await_args.kwargs["contents"][0].parts
        assert parts[0].inline_data.data == b"%PDF-1.4"
        assert parts[0].inline_data.mime_type == "application/pdf"
        assert parts[1].text == "Summarize the document"

    @pytest.mark.parametrize("text", [None, "", "   \n"])
    def test_blank_response(self, text):
        client, generate = make_client(response(text))

        with pytest.raises(EmptyResponse):
            asyncio.run(client.generate("prompt"))
        assert generate.await_count == 1


class TestFailures:

    def test_api_error_carries_status_and_message(self):
        client, generate = make_client(api_error(400, "API key not valid"))

        with pytest.raises(RequestFailed) as excinfo:
            asyncio.run(client.generate("prompt"))

        assert excinfo.value.status_code == 400
        assert excinfo.value.message == "API key not valid"
        assert generate.await_count == 1

    def test_transient_error_is_retried(self):
        client, generate = make_client(api_error(503, "The model is overloaded"), response("Recovered."))

        assert asyncio.run(client.generate("prompt")) == "Recovered."
        assert generate.await_count == 2

    def test_retries_exhausted(self):
        client, generate = make_client(*[api_error(429, "Quota exceeded")] * 2, attempts=2)

        with pytest.raises(RequestFailed, match="Quota exceeded"):
            asyncio.run(client.generate("prompt"))
        assert generate.await_count == 2

    def test_transport_error(self):
        client, generate = make_client(ConnectionError("connection reset"))

        with pytest.raises(RequestFailed) as excinfo:
            asyncio.run(client.generate("prompt"))

        assert excinfo.value.status_code is None
        assert "connection reset" in excinfo.value.message
        assert generate.await_count == 1


class TestConstruction:

    def test_missing_api_key(self):
        with pytest.raises(ConfigurationError, match="GOOGLE_API_KEY"):
            GeminiClient(ClientConfig())
