"""Summary Agent for simplified document summaries.

The summary prompt asks the model to flag hard words with the
[COMPLEX:word] convention that the markup parser renders as
interactive terms.
"""

from typing import Optional
from loguru import logger

from docinsight.error_handling import InputInvalid
from docinsight.llm_client import LanguageModelClient
from docinsight.logging_config import log_agent_execution
from docinsight.models import Attachment


COMPLEX_TERM_INSTRUCTION = (
    "For any complicated or technical words that might be difficult for readers, "
    'mark them with the format [COMPLEX:word] where "word" is the complicated word.'
)


class SummaryAgent:
    """Agent that summarizes pasted text or an attached document."""

    def __init__(self, client: LanguageModelClient):
        """Initialize the Summary Agent.

        Args:
            client: Language model client used for generation
        """
        self.client = client

    def build_prompt(self, text: Optional[str] = None, attachment: Optional[Attachment] = None) -> str:
        """Build the summarization prompt.

        An attachment takes precedence; its content travels next to the
        prompt, so the prompt only refers to it. Pasted text is embedded
        verbatim.

        Raises:
            InputInvalid: If neither text nor attachment is given
        """
        if attachment is not None:
            return f"""Summarize the following document in simple English. Make sure to keep the summary clear and easy to understand.

{COMPLEX_TERM_INSTRUCTION}

Summary:"""

        if text and text.strip():
            return f"""Summarize the following text in simple English. Make sure to keep the summary clear and easy to understand.

{COMPLEX_TERM_INSTRUCTION}

Text:
{text}

Summary:"""

        raise InputInvalid("Either text or file must be provided")

    @log_agent_execution("SummaryAgent")
    async def run(
        self,
        text: Optional[str] = None,
        attachment: Optional[Attachment] = None,
        session_id: str = "default"
    ) -> str:
        """Generate the summary.

        Args:
            text: Pasted or loaded document text
            attachment: PDF attachment, sent with its media type
            session_id: Session identifier for logging

        Returns:
            Summary text with [COMPLEX:term] markers
        """
        prompt = self.build_prompt(text, attachment)
        logger.debug(
            "Summary prompt built",
            source="attachment" if attachment is not None else "text",
            prompt_length=len(prompt)
        )
        return await self.client.generate(prompt, attachment)
