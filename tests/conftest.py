"""Shared fixtures and fake language model clients."""

import asyncio

import pytest

from docinsight.config import AppConfig, ClientConfig
from docinsight.orchestrator import DocInsightOrchestrator


class FakeClient:
    """Language model client answering from a queue of canned replies.

    Queued exceptions are raised instead of returned. Every call is recorded
    as (prompt, attachment).
    """

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    async def generate(self, prompt, attachment=None):
        self.calls.append((prompt, attachment))
        if not self.replies:
            return "Default reply."
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


class GatedClient:
    """Language model client whose calls stay pending until resolved by the test."""

    def __init__(self):
        self.calls = []
        self.pending = []

    async def generate(self, prompt, attachment=None):
        future = asyncio.get_running_loop().create_future()
        self.calls.append((prompt, attachment))
        self.pending.append(future)
        return await future


async def settle(rounds: int = 5):
    """Let freshly created tasks run up to their first real suspension."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def config():
    return AppConfig(
        client=ClientConfig(api_key="test-key-for-unit-tests", retry_initial_delay=0.0),
        log_dir=None,
        log_level="WARNING",
    )


@pytest.fixture
def make_orchestrator(config):
    def build(client):
        return DocInsightOrchestrator(config=config, client=client)
    return build
