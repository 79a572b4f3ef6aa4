"""Question Agent answering follow-up questions about a summary."""

from docinsight.error_handling import InputInvalid
from docinsight.llm_client import LanguageModelClient
from docinsight.logging_config import log_agent_execution


class QuestionAgent:
    """Agent that answers questions using the generated summary as context."""

    def __init__(self, client: LanguageModelClient):
        self.client = client

    def build_prompt(self, summary: str, question: str) -> str:
        if not summary:
            raise InputInvalid("Please generate a summary first.")
        return f"""Based on the following summary, answer the user's question clearly and concisely.

Summary:
{summary}

User's Question: {question}

Answer:"""

    @log_agent_execution("QuestionAgent")
    async def run(self, summary: str, question: str, session_id: str = "default") -> str:
        return await self.client.generate(self.build_prompt(summary, question))
