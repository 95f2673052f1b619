"""Shared pytest fixtures for llm-operate tests."""

import pytest
from dotenv import load_dotenv
from unittest.mock import AsyncMock, patch

# Load environment variables from .env file for tests
load_dotenv()

from llm_operate.config.settings import OperateSettings, reset_settings
from llm_operate.reliability.retry import RetryPolicy
from llm_operate.tools import LlmTool, Toolkit
from tests.helpers.fake_adapter import FakeAdapter, FakeStreamingAdapter


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Mock environment variables for testing."""
    env_vars = {
        "OPENAI_API_KEY": "test-openai-key",
        "ANTHROPIC_API_KEY": "test-anthropic-key",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture(autouse=True)
def clean_settings():
    """Settings are cached per process; start every test from scratch."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def test_settings():
    return OperateSettings(openai_api_key="test-openai-key", anthropic_api_key="test-anthropic-key")


@pytest.fixture
def no_sleep():
    """Skip retry backoff delays."""
    with patch("asyncio.sleep", new_callable=AsyncMock) as sleep:
        yield sleep


@pytest.fixture
def fast_policy():
    return RetryPolicy(initial_delay=0.0, max_delay=0.0, max_retries=3)


@pytest.fixture
def fake_adapter():
    return FakeAdapter()


@pytest.fixture
def fake_streaming_adapter():
    return FakeStreamingAdapter()


@pytest.fixture
def weather_calls():
    return []


@pytest.fixture
def weather_tool(weather_calls):
    """Tool returning a fixed forecast and recording the cities asked for."""

    def get_weather(city: str):
        weather_calls.append(city)
        return {"city": city, "forecast": "sunny"}

    return LlmTool(
        name="get_weather",
        description="Get the weather for a city",
        parameters={
            "type": "object",
            "properties": {"city": {"type": "string"}},
            "required": ["city"],
        },
        call=get_weather,
    )


@pytest.fixture
def failing_tool():
    def explode(**kwargs):
        raise RuntimeError("database offline")

    return LlmTool(name="lookup", description="Always fails", call=explode)


@pytest.fixture
def toolkit(weather_tool, failing_tool):
    return Toolkit([weather_tool, failing_tool])
