"""
Shared test doubles.

FakeBackend stands in for a provider backend (Anthropic / Vertex) behind
a real LLMService, counting every call it receives.
"""

import asyncio
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from workshop_coach.api.dependencies import get_llm_service
from workshop_coach.config import LLMConfig
from workshop_coach.server import app
from workshop_coach.services.llm_service import LLMService


class FakeBackend:
    """Deterministic provider double."""

    name = "fake"

    def __init__(
        self,
        text: str = "",
        chunks: Optional[List[str]] = None,
        error: Optional[Exception] = None,
        fail_after: Optional[int] = None,
    ):
        self.text = text
        self.chunks = chunks if chunks is not None else []
        self.error = error
        self.fail_after = fail_after
        self.complete_calls = []
        self.stream_calls = []
        self.streams_closed = 0

    @property
    def call_count(self) -> int:
        return len(self.complete_calls) + len(self.stream_calls)

    async def complete(self, prompt, system_instruction=None):
        self.complete_calls.append((prompt, system_instruction))
        if self.error:
            raise self.error
        return self.text

    async def stream(self, prompt, system_instruction=None):
        self.stream_calls.append((prompt, system_instruction))
        try:
            for i, chunk in enumerate(self.chunks):
                if self.error and self.fail_after == i:
                    raise self.error
                yield chunk
            if self.error and self.fail_after is None:
                raise self.error
        finally:
            self.streams_closed += 1


class ScriptedStream:
    """
    Coach stream function fed from a queue, so a test decides when each
    chunk arrives. Put a str to deliver it, an Exception to fail, None to end.
    """

    def __init__(self):
        self.queue: asyncio.Queue = asyncio.Queue()
        self.calls = []

    async def __call__(self, elements, prompt, mode, cancel_token=None):
        self.calls.append({"elements": elements, "prompt": prompt, "mode": mode})
        while True:
            item = await self.queue.get()
            if item is None:
                return
            if isinstance(item, Exception):
                raise item
            yield item


async def wait_until(condition, attempts: int = 200):
    """Yield to the loop until `condition()` holds."""
    for _ in range(attempts):
        if condition():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def llm_service(fake_backend):
    return LLMService(config=LLMConfig(anthropic_api_key="test-key"), backend=fake_backend)


@pytest.fixture
def client(llm_service):
    app.dependency_overrides[get_llm_service] = lambda: llm_service
    yield TestClient(app)
    app.dependency_overrides.clear()
