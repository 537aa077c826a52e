import pytest
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from foodscan.api.app import app
from foodscan.api.dependencies import get_rate_limiter, get_vision_client
from foodscan.config.settings import Settings, get_settings
from foodscan.services.gemini_client import GeminiVisionClient
from foodscan.services.rate_limiter import InMemoryRateLimiter

TEST_ORIGIN = "https://frontend.example"


class FakeClock:
    """Manually advanced clock for the rate limiter"""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def gemini_reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


@pytest.fixture
def make_gemini_reply():
    return gemini_reply


@pytest.fixture
def settings():
    return Settings(GEMINI_API_KEY="test-key", ALLOWED_ORIGIN=TEST_ORIGIN, RATE_LIMIT_BACKEND="memory")


@pytest.fixture
def unconfigured_settings():
    return Settings(GEMINI_API_KEY=None, ALLOWED_ORIGIN=TEST_ORIGIN, RATE_LIMIT_BACKEND="memory")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rate_limiter(clock):
    return InMemoryRateLimiter(max_requests=10, window_seconds=60, clock=clock)


@pytest.fixture
def vision_client():
    """Stand-in for Gemini; returns a small valid scan by default"""
    client = MagicMock(spec=GeminiVisionClient)
    client.generate = AsyncMock(return_value=gemini_reply(
        '{"detected": true, "items": [{"name": "apple", "quantity": "1 medium", '
        '"confidence": 92, "calories": 95, "protein": 0.5, "carbs": 25, "fat": 0.3}], '
        '"totals": {"calories": 95, "protein": 0.5, "carbs": 25, "fat": 0.3}, "notes": "Looks fresh"}'
    ))
    return client


def _client_for(settings, rate_limiter, vision_client):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    app.dependency_overrides[get_vision_client] = lambda: vision_client
    return TestClient(app)


@pytest.fixture
def client(settings, rate_limiter, vision_client):
    yield _client_for(settings, rate_limiter, vision_client)
    app.dependency_overrides.clear()


@pytest.fixture
def unconfigured_client(unconfigured_settings, rate_limiter, vision_client):
    yield _client_for(unconfigured_settings, rate_limiter, vision_client)
    app.dependency_overrides.clear()
