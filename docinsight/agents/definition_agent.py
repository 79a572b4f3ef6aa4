"""Definition Agent for single-term lookups.

Only the term itself goes into the prompt; no document context is sent.
"""

from docinsight.llm_client import LanguageModelClient
from docinsight.logging_config import log_agent_execution


class DefinitionAgent:
    """Agent that defines one flagged term in plain language."""

    def __init__(self, client: LanguageModelClient):
        self.client = client

    def build_prompt(self, term: str) -> str:
        return f"""Provide a clear, simple definition for the word "{term}". Explain what it means in easy-to-understand language. Keep it concise (1-2 sentences).

Definition:"""

    @log_agent_execution("DefinitionAgent")
    async def run(self, term: str, session_id: str = "default") -> str:
        definition = await self.client.generate(self.build_prompt(term))
        return definition.strip()
