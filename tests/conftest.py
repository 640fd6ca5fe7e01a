"""Shared fixtures for DocuSync tests."""

from typing import Callable

import httpx
import pytest

from docusync.generators.llm_client import GeminiClient
from docusync.utils.config import APIConfig

Handler = Callable[[httpx.Request], httpx.Response]


def gemini_body(text: str) -> dict:
    """Build a successful generateContent response body."""
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def error_body(code: int = 503, message: str = "The model is overloaded.") -> dict:
    """Build a generateContent error response body."""
    return {"error": {"code": code, "message": message, "status": "UNAVAILABLE"}}


class RecordingSleep:
    """Async stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def api_key(monkeypatch: pytest.MonkeyPatch) -> str:
    """Set a fake Gemini API key in the environment."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-key-123")
    return "test-key-123"


@pytest.fixture
def api_config() -> APIConfig:
    """Create a test API config."""
    return APIConfig(
        base_url="https://gemini.test/v1beta",
        model="gemini-test",
        timeout=5.0,
        retry_max_attempts=5,
        retry_base_delay=1.0,
    )


@pytest.fixture
def make_client(api_config: APIConfig, api_key: str) -> Callable[[Handler], GeminiClient]:
    """Factory building a GeminiClient backed by an httpx MockTransport."""

    def _make(handler: Handler) -> GeminiClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return GeminiClient(config=api_config, http_client=http_client)

    return _make


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    """Create a RecordingSleep."""
    return RecordingSleep()
